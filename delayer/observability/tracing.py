"""
OpenTelemetry tracing setup.

Until setup_tracing() runs, spans go to the global no-op provider, so the
queue client and promoter can be used in tests and scripts without a
collector.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.trace import Span, Tracer

from delayer import __version__
from delayer.config import get_settings

TRACER_NAME = "delayer"

# Global tracer instance
_tracer: Tracer | None = None


def setup_tracing(component: str = "api") -> Tracer:
    """
    Register a tracer provider exporting spans over OTLP.

    An empty otel_exporter_otlp_endpoint keeps the provider but exports
    nothing.

    Args:
        component: Process name recorded on the resource.

    Returns:
        Tracer: The tracer instance.
    """
    global _tracer

    settings = get_settings()

    provider = TracerProvider(
        resource=Resource.create(
            {
                "service.name": settings.otel_service_name,
                "service.version": __version__,
                "delayer.component": component,
            }
        )
    )
    if settings.otel_exporter_otlp_endpoint:
        exporter = OTLPSpanExporter(
            endpoint=settings.otel_exporter_otlp_endpoint,
            insecure=True,
        )
        provider.add_span_processor(BatchSpanProcessor(exporter))

    trace.set_tracer_provider(provider)
    _tracer = trace.get_tracer(TRACER_NAME, __version__)

    return _tracer


def instrument_fastapi(app: Any) -> None:
    """Instrument a FastAPI application, skipping probe and metrics routes."""
    FastAPIInstrumentor.instrument_app(app, excluded_urls="/live,/ready,/metrics")


def get_tracer() -> Tracer:
    """Get the configured tracer, or one from the global provider."""
    return _tracer or trace.get_tracer(TRACER_NAME, __version__)


@contextmanager
def start_span(name: str, **attributes: Any) -> Iterator[Span]:
    """
    Start a span as the current span and set the given attributes.

    Args:
        name: Span name, e.g. "delayer.push".
        **attributes: Span attributes under the "delayer." namespace.
            None values are skipped.

    Yields:
        The active span.
    """
    with get_tracer().start_as_current_span(name) as span:
        for key, value in attributes.items():
            if value is not None:
                span.set_attribute(f"delayer.{key}", value)
        yield span
