"""
Observability module.
Contains logging, metrics, and tracing setup.
"""

from delayer.observability.logging import bind_context, clear_context, setup_logging
from delayer.observability.metrics import (
    MetricsCollector,
    get_metrics,
    setup_metrics,
)
from delayer.observability.tracing import get_tracer, setup_tracing, start_span

__all__ = [
    "setup_logging",
    "bind_context",
    "clear_context",
    "setup_metrics",
    "get_metrics",
    "MetricsCollector",
    "setup_tracing",
    "get_tracer",
    "start_span",
]
