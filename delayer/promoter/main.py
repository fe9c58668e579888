"""
Promoter for moving due jobs into their ready queues.

The promoter runs periodically to find jobs in the scheduling index whose
ready-at time has passed and moves each one into its topic's ready queue.
Each move is atomic with respect to remove, so a job is either promoted
or cancelled, never both.
"""

import asyncio
import logging
import signal

from delayer.config import get_settings
from delayer.constants import SPAN_PROMOTE, PromotionOutcome
from delayer.observability.logging import setup_logging
from delayer.observability.metrics import MetricsCollector, get_metrics
from delayer.observability.tracing import setup_tracing, start_span
from delayer.store import create_store
from delayer.store.base import Store
from delayer.types.store import PromotionReport

logger = logging.getLogger(__name__)


class Promoter:
    """
    Scheduling index scanner.

    Runs periodically to:
    1. Find due job ids, oldest ready-at first (ties by id)
    2. Move each into its topic's ready queue, or drop it if its record expired
    3. Record metrics for monitoring
    """

    def __init__(
        self,
        store: Store,
        interval_seconds: float | None = None,
        batch_size: int | None = None,
        metrics: MetricsCollector | None = None,
    ):
        """
        Initialize the promoter.

        Args:
            store: Backing store shared with the queue clients.
            interval_seconds: Seconds between scans.
            batch_size: Maximum due ids fetched per index read.
            metrics: Optional metrics collector.

        Raises:
            ValueError: If interval_seconds is negative or batch_size is below 1.
        """
        settings = get_settings()
        if interval_seconds is None:
            interval_seconds = settings.promoter_interval_seconds
        if batch_size is None:
            batch_size = settings.promoter_batch_size
        if interval_seconds < 0:
            raise ValueError(f"interval_seconds must be >= 0, got {interval_seconds}")
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got {batch_size}")

        self.store = store
        self.interval = interval_seconds
        self.batch_size = batch_size
        self._running = False
        self._metrics = metrics or get_metrics()

    async def start(self) -> None:
        """Start the promoter loop."""
        logger.info(f"Promoter starting with interval {self.interval}s")
        self._running = True

        while self._running:
            try:
                report = await self.run_once()

                if report.total > 0:
                    logger.info(
                        f"Promoted {report.promoted} jobs",
                        extra={
                            "promoted": report.promoted,
                            "lost_race": report.lost_race,
                            "expired": report.expired,
                        },
                    )

            except Exception as e:
                logger.exception(f"Error in promoter loop: {e}")

            await asyncio.sleep(self.interval)

        logger.info("Promoter stopped")

    async def stop(self) -> None:
        """Stop the promoter."""
        logger.info("Promoter stopping")
        self._running = False

    async def run_once(self, now: float | None = None) -> PromotionReport:
        """
        Promote every job due at the given time.

        Reads due ids in batches and keeps going while full batches come
        back. Ids cancelled or promoted by someone else in the meantime are
        counted as lost races.

        Args:
            now: Unix time to promote against. Defaults to the store clock.

        Returns:
            PromotionReport with per-outcome counts.
        """
        now = self.store.time() if now is None else now
        report = PromotionReport()

        with start_span(SPAN_PROMOTE, batch_size=self.batch_size):
            while True:
                job_ids = await self.store.due_jobs(now, self.batch_size)

                for job_id in job_ids:
                    outcome = await self.store.promote(job_id)
                    report.record(job_id, outcome)

                    if outcome == PromotionOutcome.EXPIRED:
                        logger.warning(
                            "Dropped due job whose record expired before promotion",
                            extra={"job_id": job_id},
                        )

                if len(job_ids) < self.batch_size:
                    break

        self._metrics.record_promotions(PromotionOutcome.PROMOTED, report.promoted)
        self._metrics.record_promotions(PromotionOutcome.LOST_RACE, report.lost_race)
        self._metrics.record_promotions(PromotionOutcome.EXPIRED, report.expired)
        self._metrics.update_index_size(await self.store.index_size())

        return report


async def run_async() -> None:
    """Run the promoter asynchronously."""
    setup_logging("promoter")
    setup_tracing("promoter")
    store = create_store()

    promoter = Promoter(store)

    # Handle shutdown signals
    loop = asyncio.get_running_loop()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(
            sig,
            lambda: asyncio.create_task(promoter.stop())
        )

    try:
        await promoter.start()
    finally:
        await store.close()


def run() -> None:
    """Run the promoter."""
    asyncio.run(run_async())


if __name__ == "__main__":
    run()
