"""
Exception hierarchy for queue operations.

Empty and timeout conditions are expected signals and derive from
QueueEmpty so callers can poll without treating them as faults.
"""


class DelayerError(Exception):
    """Base class for all delayer errors."""


class StoreError(DelayerError):
    """Connectivity or command failure reported by the backing store."""


class InvalidArgument(DelayerError, ValueError):
    """Operation arguments failed validation; nothing was written."""


class InvalidMessage(InvalidArgument):
    """Message is missing its id, topic or body."""


class QueueEmpty(DelayerError):
    """No job was available on the topic's ready queue."""

    def __init__(self, topic: str, message: str | None = None):
        self.topic = topic
        super().__init__(message or f"No job available on topic {topic!r}")


class NotAvailable(QueueEmpty):
    """Non-blocking pop found the ready queue empty."""


class PopTimeout(QueueEmpty):
    """Blocking pop reached its timeout without receiving a job."""

    def __init__(self, topic: str, timeout: int):
        self.timeout = timeout
        super().__init__(topic, f"Timed out after {timeout}s waiting on topic {topic!r}")


class ExpiredOrIncomplete(DelayerError):
    """
    A promoted job id had no complete job record.

    Raised when the record's TTL lapsed between promotion and pop, which
    means ready_max_lifetime is too short for consumer latency.
    """

    def __init__(self, job_id: str, topic: str):
        self.job_id = job_id
        self.topic = topic
        super().__init__(f"Job bucket for {job_id!r} has expired or is incomplete")
