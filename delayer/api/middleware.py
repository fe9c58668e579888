"""
Request middleware: log context and request metrics.
"""

import time
from collections.abc import Callable

from fastapi import Request

from delayer.observability.logging import bind_context, clear_context
from delayer.observability.metrics import get_metrics

# Paths that are not worth recording
_SKIP_PATHS = {"/metrics", "/live", "/docs", "/openapi.json"}


def create_metrics_middleware() -> Callable:
    """
    Create request middleware for FastAPI.

    Binds the request method and path to the log context, then records
    request count and latency per route template.

    Returns:
        The middleware function.
    """

    async def metrics_middleware(request: Request, call_next: Callable):
        if request.url.path in _SKIP_PATHS:
            return await call_next(request)

        clear_context()
        bind_context(http_method=request.method, http_path=request.url.path)

        start = time.perf_counter()
        response = await call_next(request)
        duration = time.perf_counter() - start

        # Route template keeps topic and job ids out of the labels
        route = request.scope.get("route")
        endpoint = getattr(route, "path", "unmatched")

        get_metrics().record_api_request(
            method=request.method,
            endpoint=endpoint,
            status=response.status_code,
            duration_seconds=duration,
        )
        return response

    return metrics_middleware
