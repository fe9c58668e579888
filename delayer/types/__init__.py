"""
Type definitions for the delayed job queue.
"""

from delayer.types.api import (
    ErrorResponse,
    HealthResponse,
    MessageResponse,
    PushRequest,
    PushResponse,
    RemoveResponse,
    StatsResponse,
)
from delayer.types.message import Message
from delayer.types.store import CommandResult, PromotionReport, TxOutcome, TxResult

__all__ = [
    # API types
    "PushRequest",
    "PushResponse",
    "RemoveResponse",
    "MessageResponse",
    "StatsResponse",
    "HealthResponse",
    "ErrorResponse",
    # Queue types
    "Message",
    # Store types
    "CommandResult",
    "TxOutcome",
    "TxResult",
    "PromotionReport",
]
