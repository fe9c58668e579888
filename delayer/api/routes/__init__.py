"""
API routes module.
"""

from delayer.api.routes.health import router as health_router
from delayer.api.routes.jobs import router as jobs_router
from delayer.api.routes.topics import router as topics_router

__all__ = ["jobs_router", "topics_router", "health_router"]
