"""
API request and response type definitions.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class PushRequest(BaseModel):
    """Request body for pushing a delayed job."""

    id: str | None = Field(
        default=None,
        min_length=1,
        description="Job id. Generated when omitted.",
    )
    topic: str = Field(..., min_length=1, description="Delivery topic")
    body: str = Field(..., min_length=1, description="Opaque job payload")
    delay: int = Field(default=0, ge=0, description="Seconds before the job is ready")
    ready_max_lifetime: int | None = Field(
        default=None,
        ge=0,
        description="Seconds the payload outlives the delay. Uses the server default when omitted.",
    )


class PushResponse(BaseModel):
    """Response body after pushing a job."""

    id: str
    accepted: bool
    message: str = "Job scheduled"


class RemoveResponse(BaseModel):
    """Response body after cancelling a job."""

    id: str
    removed: bool


class MessageResponse(BaseModel):
    """A job delivered to a consumer."""

    id: str
    topic: str
    body: str


class StatsResponse(BaseModel):
    """Queue statistics."""

    scheduled: int
    ready: dict[str, int]


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    store: str
    timestamp: datetime


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str
    detail: str | None = None
