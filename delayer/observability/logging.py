"""
Structured logging setup using structlog.

Both processes (the API and the promoter) log through the standard library.
structlog renders every record, adding the service and component names,
any bound request context, and the current trace ids.
"""

import logging
import sys
from typing import Any

import structlog
from opentelemetry import trace

from delayer.config import get_settings

# Noisy third-party loggers kept at WARNING
_QUIET_LOGGERS = ("uvicorn.access", "redis", "opentelemetry")


class ServiceContext:
    """Processor stamping the service and component onto each event."""

    def __init__(self, service: str, component: str):
        self.service = service
        self.component = component

    def __call__(self, logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        event_dict.setdefault("service", self.service)
        event_dict.setdefault("component", self.component)
        return event_dict


def add_trace_ids(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Add trace_id and span_id when a span is being recorded."""
    ctx = trace.get_current_span().get_span_context()
    if ctx.is_valid:
        event_dict["trace_id"] = format(ctx.trace_id, "032x")
        event_dict["span_id"] = format(ctx.span_id, "016x")
    return event_dict


def setup_logging(
    component: str = "api",
    level: str | None = None,
    fmt: str | None = None,
) -> None:
    """
    Configure structured logging for one process.

    Args:
        component: Process name added to every event ("api" or "promoter").
        level: Log level name. Defaults to the configured level.
        fmt: "json" or "console". Defaults to the configured format.
    """
    settings = get_settings()
    fmt = fmt or settings.log_format
    log_level = logging.getLevelName((level or settings.log_level).upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO

    pre_chain: list[Any] = [
        structlog.contextvars.merge_contextvars,
        ServiceContext(settings.otel_service_name, component),
        add_trace_ids,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.stdlib.ExtraAdder(),
    ]

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if fmt == "json"
        else structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(log_level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def bind_context(**kwargs: Any) -> None:
    """
    Bind context variables to all subsequent log messages of the current task.

    Args:
        **kwargs: Key-value pairs to add to log context.
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Clear all bound context variables."""
    structlog.contextvars.clear_contextvars()
