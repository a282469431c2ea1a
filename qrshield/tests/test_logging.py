"""Tests for structured logging and metrics."""

import json
import logging

from qrshield.utils.logging_config import (
    JSONFormatter,
    MetricsCollector,
    StructuredLogger,
    request_id_var,
    track_analysis,
)


class _ListHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record):
        self.records.append(record)


class TestJSONFormatter:
    """Tests for JSON log output."""

    def test_includes_extra_data_and_request_id(self):
        handler = _ListHandler()
        raw = logging.getLogger("qrshield.tests.json")
        raw.addHandler(handler)
        raw.setLevel(logging.DEBUG)
        token = request_id_var.set("req-1")
        try:
            StructuredLogger("qrshield.tests.json").info("URL evaluated", risk_score=45)
            payload = json.loads(JSONFormatter().format(handler.records[0]))
        finally:
            request_id_var.reset(token)
            raw.removeHandler(handler)

        assert payload["message"] == "URL evaluated"
        assert payload["level"] == "INFO"
        assert payload["request_id"] == "req-1"
        assert payload["data"] == {"risk_score": 45}

    def test_disabled_level_not_emitted(self):
        handler = _ListHandler()
        raw = logging.getLogger("qrshield.tests.quiet")
        raw.addHandler(handler)
        raw.setLevel(logging.WARNING)
        try:
            StructuredLogger("qrshield.tests.quiet").debug("noise", x=1)
        finally:
            raw.removeHandler(handler)
        assert handler.records == []


class TestMetricsCollector:
    """Tests for the in-memory metrics collector."""

    def test_counters_and_timings(self):
        collector = MetricsCollector()
        collector.increment("a")
        collector.increment("a", 2)
        collector.timing("t", 0.5)
        stats = collector.get_stats()
        assert stats["counters"] == {"a": 3}
        assert stats["timings"]["t"]["count"] == 1

    def test_reset(self):
        collector = MetricsCollector()
        collector.increment("a")
        collector.reset()
        assert collector.get_stats()["counters"] == {}

    def test_track_analysis_passes_plain_values_through(self):
        @track_analysis("test")
        def compute():
            return 42

        assert compute() == 42
