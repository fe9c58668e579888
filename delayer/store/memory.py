"""
In-memory store for tests and single-process development.

Mirrors the Redis semantics: records expire by TTL against the store
clock, the index orders ties by id, and ready queues are FIFO.
"""

import asyncio
import logging
import time
from collections import defaultdict, deque
from collections.abc import Callable

from delayer.constants import FIELD_TOPIC, PromotionOutcome
from delayer.store.base import Store
from delayer.types.message import Message
from delayer.types.store import CommandResult, TxResult

logger = logging.getLogger(__name__)


class MemoryStore(Store):
    """
    Store backed by dicts and deques guarded by one asyncio condition.

    The clock can be replaced to simulate the passage of time for
    ready-at scores and record expiry. Blocking pops always wait in
    real time.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._index: dict[str, float] = {}
        self._records: dict[str, tuple[dict[str, str], float]] = {}
        self._queues: dict[str, deque[str]] = defaultdict(deque)
        self._condition = asyncio.Condition()

    def time(self) -> float:
        return self._clock()

    def _live_record(self, job_id: str) -> dict[str, str] | None:
        entry = self._records.get(job_id)
        if entry is None:
            return None
        fields, expires_at = entry
        if self._clock() >= expires_at:
            del self._records[job_id]
            return None
        return fields

    async def schedule(self, message: Message, ready_at: float, ttl: int) -> TxResult:
        async with self._condition:
            existing = self._live_record(message.id)
            fields = dict(existing or {})
            added_fields = len(set(message.to_record()) - set(fields))
            fields.update(message.to_record())
            self._records[message.id] = (fields, self._clock() + ttl)

            added = message.id not in self._index
            self._index[message.id] = ready_at

        return TxResult(
            commands=(
                CommandResult("HSET", True, added_fields),
                CommandResult("EXPIRE", True, 1),
                CommandResult("ZADD", added, int(added)),
            )
        )

    async def cancel(self, job_id: str) -> TxResult:
        async with self._condition:
            in_index = self._index.pop(job_id, None) is not None
            had_record = False
            if in_index:
                had_record = self._live_record(job_id) is not None
                self._records.pop(job_id, None)

        return TxResult(
            commands=(
                CommandResult("ZREM", in_index, int(in_index)),
                CommandResult("DEL", had_record, int(had_record)),
            )
        )

    async def pop_ready(self, topic: str) -> str | None:
        async with self._condition:
            queue = self._queues.get(topic)
            if not queue:
                return None
            return queue.popleft()

    async def bpop_ready(self, topic: str, timeout: int) -> str | None:
        async with self._condition:
            def has_entry() -> bool:
                return bool(self._queues.get(topic))

            try:
                if timeout:
                    await asyncio.wait_for(self._condition.wait_for(has_entry), timeout)
                else:
                    await self._condition.wait_for(has_entry)
            except asyncio.TimeoutError:
                return None
            return self._queues[topic].popleft()

    async def read_record(self, job_id: str) -> dict[str, str]:
        async with self._condition:
            return dict(self._live_record(job_id) or {})

    async def delete_record(self, job_id: str) -> bool:
        async with self._condition:
            existed = self._live_record(job_id) is not None
            self._records.pop(job_id, None)
            return existed

    async def due_jobs(self, now: float, limit: int) -> list[str]:
        async with self._condition:
            due = sorted(
                (ready_at, job_id)
                for job_id, ready_at in self._index.items()
                if ready_at <= now
            )
            return [job_id for _, job_id in due[:limit]]

    async def promote(self, job_id: str) -> PromotionOutcome:
        async with self._condition:
            if self._index.pop(job_id, None) is None:
                return PromotionOutcome.LOST_RACE

            record = self._live_record(job_id)
            topic = record.get(FIELD_TOPIC) if record else None
            if not topic:
                logger.debug("Dropped expired job during promotion", extra={"job_id": job_id})
                return PromotionOutcome.EXPIRED

            self._queues[topic].append(job_id)
            self._condition.notify_all()
            return PromotionOutcome.PROMOTED

    async def index_size(self) -> int:
        return len(self._index)

    async def queue_depth(self, topic: str) -> int:
        return len(self._queues.get(topic, ()))

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        pass
