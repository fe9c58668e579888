"""
FastAPI application entry point.
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from delayer import __version__
from delayer.api.middleware import create_metrics_middleware
from delayer.api.routes import health_router, jobs_router, topics_router
from delayer.client import QueueClient
from delayer.config import get_settings
from delayer.errors import (
    DelayerError,
    ExpiredOrIncomplete,
    InvalidArgument,
    NotAvailable,
    PopTimeout,
    StoreError,
)
from delayer.observability.logging import setup_logging
from delayer.observability.metrics import setup_metrics
from delayer.observability.tracing import instrument_fastapi, setup_tracing
from delayer.store import create_store
from delayer.store.base import Store

logger = logging.getLogger(__name__)

# Status codes for queue errors surfaced over HTTP
ERROR_STATUS: dict[type[DelayerError], int] = {
    InvalidArgument: 422,
    NotAvailable: status.HTTP_404_NOT_FOUND,
    PopTimeout: status.HTTP_408_REQUEST_TIMEOUT,
    ExpiredOrIncomplete: status.HTTP_410_GONE,
    StoreError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


async def delayer_error_handler(request: Request, exc: DelayerError) -> JSONResponse:
    """Translate queue errors into JSON error responses."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    for error_type, code in ERROR_STATUS.items():
        if isinstance(exc, error_type):
            status_code = code
            break

    if status_code >= 500:
        logger.error(f"Request failed: {exc}", extra={"path": request.url.path})

    return JSONResponse(
        status_code=status_code,
        content={"error": type(exc).__name__, "detail": str(exc)},
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Set up observability on startup and release store connections on shutdown.
    """
    setup_logging("api")
    setup_metrics()
    setup_tracing("api")

    store = app.state.store
    logger.info("Delayer API started", extra={"store": type(store).__name__})

    yield

    await store.close()
    logger.info("Delayer API stopped")


def create_app(store: Store | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        store: Optional store. Built from settings if not provided; no
            connection is opened until the first request.

    Returns:
        FastAPI: The configured application instance.
    """
    app = FastAPI(
        title="Delayer API",
        description="Delayed job queue backed by Redis",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.state.store = store or create_store()
    app.state.client = QueueClient(app.state.store)

    app.add_middleware(
        BaseHTTPMiddleware,
        dispatch=create_metrics_middleware(),
    )

    app.add_exception_handler(DelayerError, delayer_error_handler)

    # Include routers
    app.include_router(health_router)
    app.include_router(jobs_router)
    app.include_router(topics_router)

    # Instrument with OpenTelemetry
    instrument_fastapi(app)

    return app


def run() -> None:
    """Run the API server."""
    settings = get_settings()
    app = create_app()

    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
