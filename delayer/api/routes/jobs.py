"""
Job scheduling routes.
"""

import logging

from fastapi import APIRouter, status

from delayer.api.dependencies import Client
from delayer.config import get_settings
from delayer.constants import API_V1_PREFIX
from delayer.types.api import PushRequest, PushResponse, RemoveResponse
from delayer.types.message import Message

logger = logging.getLogger(__name__)

router = APIRouter(prefix=f"{API_V1_PREFIX}/jobs", tags=["Jobs"])


@router.post(
    "",
    response_model=PushResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Push a delayed job",
    description="Schedule a message for delivery to its topic after a delay.",
)
async def push_job(request: PushRequest, client: Client) -> PushResponse:
    """
    Push a job.

    A push that only rescheduled an existing pending id is reported with
    accepted=false.

    Args:
        request: Job push request.
        client: Queue client.

    Returns:
        PushResponse with the job id.
    """
    settings = get_settings()

    if request.id is None:
        message = Message.create(topic=request.topic, body=request.body)
    else:
        message = Message(id=request.id, topic=request.topic, body=request.body)

    ready_max_lifetime = request.ready_max_lifetime
    if ready_max_lifetime is None:
        ready_max_lifetime = settings.default_ready_max_lifetime_seconds

    accepted = await client.push(message, request.delay, ready_max_lifetime)

    return PushResponse(
        id=message.id,
        accepted=accepted,
        message="Job scheduled" if accepted else "Job rescheduled or not fully applied",
    )


@router.delete(
    "/{job_id}",
    response_model=RemoveResponse,
    summary="Cancel a job",
    description="Cancel a job that has not been promoted to its ready queue yet.",
)
async def remove_job(job_id: str, client: Client) -> RemoveResponse:
    """
    Remove a scheduled job.

    removed=false means the job was already promoted, cancelled, or never existed.
    """
    removed = await client.remove(job_id)
    return RemoveResponse(id=job_id, removed=removed)
