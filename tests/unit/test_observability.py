"""
Unit tests for logging and tracing helpers.
"""

import json
import logging

import pytest

from delayer.observability.logging import (
    ServiceContext,
    add_trace_ids,
    bind_context,
    clear_context,
    setup_logging,
)
from delayer.observability.tracing import start_span


@pytest.fixture
def restore_root_logger():
    """Restore root logger handlers after a logging setup test."""
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    clear_context()
    root.handlers = handlers
    root.setLevel(level)


class TestLogging:
    """Tests for structured logging setup."""

    def test_json_output(self, capsys, restore_root_logger):
        """Test that stdlib records render as JSON with service fields and extras."""
        setup_logging("promoter", level="DEBUG", fmt="json")
        bind_context(scan="s1")

        logging.getLogger("delayer.test").info("Promoted jobs", extra={"promoted": 3})

        line = capsys.readouterr().out.strip().splitlines()[-1]
        event = json.loads(line)
        assert event["event"] == "Promoted jobs"
        assert event["level"] == "info"
        assert event["component"] == "promoter"
        assert event["service"] == "delayer"
        assert event["promoted"] == 3
        assert event["scan"] == "s1"

    def test_level_filtering(self, capsys, restore_root_logger):
        setup_logging("api", level="WARNING", fmt="json")

        logging.getLogger("delayer.test").info("hidden")

        assert capsys.readouterr().out == ""

    def test_service_context_keeps_explicit_values(self):
        processor = ServiceContext("delayer", "api")

        event = processor(None, "info", {"event": "x", "component": "custom"})

        assert event == {"event": "x", "component": "custom", "service": "delayer"}


class TestTracing:
    """Tests for span helpers without a configured exporter."""

    def test_start_span_without_provider(self):
        """Test that spans are no-ops before tracing is set up."""
        with start_span("delayer.test", job_id="j1", topic=None) as span:
            assert span is not None
            event = add_trace_ids(None, "info", {"event": "x"})

        assert "trace_id" not in event
