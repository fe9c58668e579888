"""
Queue client for the delayed job queue.

Producers push messages with a delay. Once the promoter has moved a due
job into its topic's ready queue, consumers pop it. Jobs still in the
scheduling index can be cancelled with remove.
"""

import logging

from delayer.constants import (
    SPAN_BPOP,
    SPAN_POP,
    SPAN_PUSH,
    SPAN_REMOVE,
    PopOutcome,
)
from delayer.errors import (
    ExpiredOrIncomplete,
    InvalidArgument,
    InvalidMessage,
    NotAvailable,
    PopTimeout,
    StoreError,
)
from delayer.observability.metrics import MetricsCollector, get_metrics
from delayer.observability.tracing import start_span
from delayer.store.base import Store
from delayer.types.message import Message
from delayer.types.store import TxOutcome

logger = logging.getLogger(__name__)


def _check_seconds(name: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise InvalidArgument(f"{name} must be a non-negative integer, got {value!r}")


def _check_topic(topic: str) -> None:
    if not isinstance(topic, str) or not topic:
        raise InvalidArgument("topic must be a non-empty string")


class QueueClient:
    """
    Client for push, pop, bpop and remove.

    Holds no state besides the store, so one instance can be shared by
    any number of concurrent tasks.
    """

    def __init__(self, store: Store, metrics: MetricsCollector | None = None):
        """
        Initialize the client.

        Args:
            store: Backing store for the index, records and ready queues.
            metrics: Optional metrics collector. Uses the global one if not provided.
        """
        self._store = store
        self._metrics = metrics or get_metrics()

    @property
    def store(self) -> Store:
        return self._store

    async def push(
        self,
        message: Message,
        delay: int,
        ready_max_lifetime: int,
    ) -> bool:
        """
        Schedule a message for delivery after delay seconds.

        The job record and the scheduling index entry are written in one
        transaction. The record lives for delay + ready_max_lifetime seconds.

        Args:
            message: The message to schedule.
            delay: Seconds until the job becomes ready.
            ready_max_lifetime: Seconds the payload survives after the delay.

        Returns:
            True if every write reported success. False if the transaction
            ran but a write did not, e.g. the id was already scheduled and
            its entry was only rescheduled.

        Raises:
            InvalidMessage: If id, topic or body is empty.
            InvalidArgument: If a duration is negative or not an integer.
            StoreError: On store failure.
        """
        if not message.valid():
            raise InvalidMessage("Invalid message: id, topic and body must be non-empty")
        _check_seconds("delay", delay)
        _check_seconds("ready_max_lifetime", ready_max_lifetime)

        with start_span(SPAN_PUSH, job_id=message.id, topic=message.topic, delay=delay):
            ready_at = self._store.time() + delay
            result = await self._store.schedule(
                message,
                ready_at=ready_at,
                ttl=delay + ready_max_lifetime,
            )

        accepted = result.committed
        self._metrics.record_push(message.topic, accepted)

        if accepted:
            logger.info(
                "Scheduled job",
                extra={"job_id": message.id, "topic": message.topic, "delay": delay},
            )
        else:
            logger.warning(
                "Push transaction did not fully apply",
                extra={
                    "job_id": message.id,
                    "topic": message.topic,
                    "outcome": result.outcome.value,
                    "results": [c.raw for c in result.commands],
                },
            )
        return accepted

    async def pop(self, topic: str) -> Message:
        """
        Take the oldest ready job from a topic without waiting.

        Args:
            topic: The topic to pop from.

        Returns:
            The delivered message. Its job record has been deleted.

        Raises:
            NotAvailable: If the ready queue is empty.
            ExpiredOrIncomplete: If the job record lapsed before the pop.
            StoreError: On store failure.
        """
        _check_topic(topic)

        with start_span(SPAN_POP, topic=topic):
            job_id = await self._store.pop_ready(topic)

        if job_id is None:
            self._metrics.record_pop(topic, PopOutcome.EMPTY)
            raise NotAvailable(topic)
        return await self._take(job_id, topic)

    async def bpop(self, topic: str, timeout: int) -> Message:
        """
        Take the oldest ready job from a topic, waiting for one to arrive.

        Only the calling task is suspended. Each job id is handed to exactly
        one waiting consumer.

        Args:
            topic: The topic to pop from.
            timeout: Seconds to wait. 0 waits indefinitely.

        Returns:
            The delivered message. Its job record has been deleted.

        Raises:
            PopTimeout: If no job arrived within timeout seconds.
            ExpiredOrIncomplete: If the job record lapsed before the pop.
            StoreError: On store failure.
        """
        _check_topic(topic)
        _check_seconds("timeout", timeout)

        with start_span(SPAN_BPOP, topic=topic, timeout=timeout):
            job_id = await self._store.bpop_ready(topic, timeout)

        if job_id is None:
            self._metrics.record_pop(topic, PopOutcome.TIMEOUT)
            raise PopTimeout(topic, timeout)
        return await self._take(job_id, topic)

    async def _take(self, job_id: str, topic: str) -> Message:
        """Read and delete the job record for a popped id."""
        record = await self._store.read_record(job_id)
        message = Message.from_record(job_id, record)
        if message is None:
            self._metrics.record_pop(topic, PopOutcome.EXPIRED)
            logger.warning(
                "Popped job has no complete record; ready_max_lifetime may be too short",
                extra={"job_id": job_id, "topic": topic},
            )
            raise ExpiredOrIncomplete(job_id, topic)

        # Best-effort; an undeleted record still expires by its TTL.
        try:
            await self._store.delete_record(job_id)
        except StoreError as e:
            logger.warning(
                f"Failed to delete delivered job record: {e}",
                extra={"job_id": job_id, "topic": topic},
            )
        self._metrics.record_pop(topic, PopOutcome.DELIVERED)
        logger.info("Delivered job", extra={"job_id": job_id, "topic": topic})
        return message

    async def remove(self, job_id: str) -> bool:
        """
        Cancel a job that has not been promoted yet.

        Deletes the scheduling index entry and the job record in one
        transaction. Jobs already sitting in a ready queue are untouched.

        Args:
            job_id: The job id to cancel.

        Returns:
            True only if both the index entry and the record were removed.

        Raises:
            InvalidArgument: If job_id is empty.
            StoreError: On store failure.
        """
        if not isinstance(job_id, str) or not job_id:
            raise InvalidArgument("job id must be a non-empty string")

        with start_span(SPAN_REMOVE, job_id=job_id):
            result = await self._store.cancel(job_id)

        removed = result.committed
        self._metrics.record_remove(removed)

        if removed:
            logger.info("Removed job", extra={"job_id": job_id})
        elif result.outcome == TxOutcome.PARTIAL:
            logger.info(
                "Remove partially applied",
                extra={"job_id": job_id, "results": [c.raw for c in result.commands]},
            )
        else:
            logger.debug("Remove found nothing to cancel", extra={"job_id": job_id})
        return removed
