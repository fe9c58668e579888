"""
Consumer routes for taking ready jobs off a topic.
"""

from fastapi import APIRouter, HTTPException, Query, status

from delayer.api.dependencies import Client
from delayer.config import get_settings
from delayer.constants import API_V1_PREFIX
from delayer.types.api import ErrorResponse, MessageResponse
from delayer.types.message import Message

router = APIRouter(prefix=f"{API_V1_PREFIX}/topics", tags=["Topics"])

_POP_RESPONSES = {
    status.HTTP_410_GONE: {"model": ErrorResponse, "description": "Job record expired"},
}


def _to_response(message: Message) -> MessageResponse:
    return MessageResponse(id=message.id, topic=message.topic, body=message.body)


@router.post(
    "/{topic}/pop",
    response_model=MessageResponse,
    responses={
        status.HTTP_404_NOT_FOUND: {"model": ErrorResponse, "description": "Queue empty"},
        **_POP_RESPONSES,
    },
    summary="Pop a ready job",
    description="Take the oldest ready job from a topic without waiting.",
)
async def pop_job(topic: str, client: Client) -> MessageResponse:
    """Pop a job from a topic's ready queue."""
    message = await client.pop(topic)
    return _to_response(message)


@router.post(
    "/{topic}/bpop",
    response_model=MessageResponse,
    responses={
        status.HTTP_408_REQUEST_TIMEOUT: {"model": ErrorResponse, "description": "Timed out"},
        **_POP_RESPONSES,
    },
    summary="Blocking pop",
    description="Wait up to timeout seconds for a ready job on a topic.",
)
async def bpop_job(
    topic: str,
    client: Client,
    timeout: int = Query(default=10, ge=1, description="Seconds to wait"),
) -> MessageResponse:
    """
    Pop a job, waiting for one to become ready.

    Waiting indefinitely is not offered over HTTP; timeouts above the
    configured maximum are rejected.
    """
    settings = get_settings()
    if timeout > settings.api_max_blocking_timeout_seconds:
        raise HTTPException(
            status_code=422,
            detail=f"timeout must be at most {settings.api_max_blocking_timeout_seconds}",
        )

    message = await client.bpop(topic, timeout)
    return _to_response(message)
