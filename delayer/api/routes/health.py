"""
Health, stats and metrics routes.
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Query
from fastapi.responses import Response

from delayer import __version__
from delayer.api.dependencies import StoreDep
from delayer.constants import API_V1_PREFIX
from delayer.errors import StoreError
from delayer.observability.metrics import get_metrics
from delayer.types.api import HealthResponse, StatsResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


async def _store_ok(store) -> bool:
    try:
        return await store.ping()
    except StoreError as e:
        logger.warning(f"Store health check failed: {e}")
        return False


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Check the health of the API and store connection.",
)
async def health_check(store: StoreDep) -> HealthResponse:
    """
    Perform a health check.

    Checks store connectivity and returns service status.
    """
    store_status = "healthy" if await _store_ok(store) else "unhealthy"

    return HealthResponse(
        status="healthy" if store_status == "healthy" else "degraded",
        version=__version__,
        store=store_status,
        timestamp=datetime.now(timezone.utc),
    )


@router.get(
    "/ready",
    summary="Readiness check",
    description="Check if the service is ready to receive traffic.",
)
async def readiness_check(store: StoreDep) -> dict:
    """Kubernetes readiness probe endpoint."""
    return {"ready": await _store_ok(store)}


@router.get(
    "/live",
    summary="Liveness check",
    description="Check if the service is alive.",
)
async def liveness_check() -> dict:
    """Kubernetes liveness probe endpoint."""
    return {"alive": True}


@router.get(
    f"{API_V1_PREFIX}/stats",
    response_model=StatsResponse,
    summary="Queue statistics",
    description="Scheduling index size and ready queue depth per requested topic.",
)
async def stats(
    store: StoreDep,
    topic: list[str] = Query(default=[]),
) -> StatsResponse:
    """
    Report queue sizes and refresh the matching gauges.

    Args:
        store: The backing store.
        topic: Topics to report ready queue depth for.
    """
    metrics = get_metrics()

    scheduled = await store.index_size()
    metrics.update_index_size(scheduled)

    ready: dict[str, int] = {}
    for name in topic:
        ready[name] = await store.queue_depth(name)
        metrics.update_queue_depth(name, ready[name])

    return StatsResponse(scheduled=scheduled, ready=ready)


@router.get(
    "/metrics",
    summary="Prometheus metrics",
    description="Expose Prometheus metrics.",
)
async def metrics() -> Response:
    """Expose Prometheus metrics."""
    metrics_collector = get_metrics()
    return Response(
        content=metrics_collector.get_metrics(),
        media_type=metrics_collector.get_content_type(),
    )
