"""
Store interface for the three logical structures of the queue.

- Scheduling index: job ids ordered by ready-at timestamp
- Job records: ephemeral topic/body hashes with a TTL
- Ready queues: one FIFO list of job ids per topic

Every multi-structure transition (schedule, cancel, promote) is a single
atomic operation of the implementation.
"""

from abc import ABC, abstractmethod

from delayer.constants import PromotionOutcome
from delayer.types.message import Message
from delayer.types.store import TxResult


class Store(ABC):
    """Abstract backing store used by the queue client and the promoter."""

    @abstractmethod
    def time(self) -> float:
        """Current unix time in seconds used for ready-at scores."""
        ...

    @abstractmethod
    async def schedule(self, message: Message, ready_at: float, ttl: int) -> TxResult:
        """
        Write the job record and insert the id into the scheduling index.

        Results are reported for HSET, EXPIRE and ZADD, in that order.
        """
        ...

    @abstractmethod
    async def cancel(self, job_id: str) -> TxResult:
        """
        Delete the id from the scheduling index and, only if it was there,
        delete its job record. Jobs already promoted are left untouched.

        Results are reported for ZREM and DEL, in that order.
        """
        ...

    @abstractmethod
    async def pop_ready(self, topic: str) -> str | None:
        """Pop the oldest job id from a topic's ready queue."""
        ...

    @abstractmethod
    async def bpop_ready(self, topic: str, timeout: int) -> str | None:
        """
        Pop the oldest job id, waiting up to timeout seconds.

        A timeout of 0 waits indefinitely. Returns None on timeout.
        """
        ...

    @abstractmethod
    async def read_record(self, job_id: str) -> dict[str, str]:
        """Read a job record. Returns an empty dict when it is absent."""
        ...

    @abstractmethod
    async def delete_record(self, job_id: str) -> bool:
        """Delete a job record. Deleting an absent record is not an error."""
        ...

    @abstractmethod
    async def due_jobs(self, now: float, limit: int) -> list[str]:
        """Job ids with ready_at <= now, ordered by ready_at then id."""
        ...

    @abstractmethod
    async def promote(self, job_id: str) -> PromotionOutcome:
        """
        Move one job from the scheduling index to its topic's ready queue.

        Only one of promote and cancel can win a given job. Jobs whose
        record has expired are dropped from the index.
        """
        ...

    @abstractmethod
    async def index_size(self) -> int:
        """Number of jobs waiting in the scheduling index."""
        ...

    @abstractmethod
    async def queue_depth(self, topic: str) -> int:
        """Number of job ids waiting in a topic's ready queue."""
        ...

    @abstractmethod
    async def ping(self) -> bool:
        """Check store connectivity."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release pooled connections."""
        ...
