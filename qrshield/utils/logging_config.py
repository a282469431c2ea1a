"""
Structured logging and in-process metrics for QRShield.

Production logs are one JSON object per line, tagged with the request id of
the HTTP call that produced them. Development logs stay human-readable.
"""

import json
import logging
import sys
import threading
import time
import traceback
from contextvars import ContextVar
from datetime import datetime, timezone
from functools import wraps
from pathlib import Path
from typing import Any, Dict, List, Optional

from qrshield.config import settings


# Set by the request-id middleware for the duration of a request
request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

SERVICE_NAME = "qrshield"

NOISY_LOGGERS = ("PIL", "multipart", "python_multipart", "python_multipart.multipart")


class JSONFormatter(logging.Formatter):
    """Renders a LogRecord as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "service": SERVICE_NAME,
            "environment": settings.environment,
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = request_id_var.get()
        if request_id:
            entry["request_id"] = request_id

        extra_data = getattr(record, "extra_data", None)
        if extra_data:
            entry["data"] = extra_data

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc, tb = record.exc_info
            entry["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc),
                "traceback": traceback.format_exception(exc_type, exc, tb),
            }

        return json.dumps(entry, default=str)


class StructuredLogger:
    """
    Logger that takes its context as keyword arguments.

    Usage:
        logger = StructuredLogger(__name__)
        logger.info("QR code decoded", decoder="opencv", payload_preview=url[:140])
        logger.error("Decode crashed", exc_info=True, source="camera")
    """

    def __init__(self, name: str):
        self._logger = logging.getLogger(name)

    def _log(self, level: int, message: str, exc_info: bool = False, **fields):
        if self._logger.isEnabledFor(level):
            self._logger.log(
                level,
                message,
                exc_info=exc_info,
                extra={"extra_data": fields},
                stacklevel=3,
            )

    def debug(self, message: str, **fields):
        self._log(logging.DEBUG, message, **fields)

    def info(self, message: str, **fields):
        self._log(logging.INFO, message, **fields)

    def warning(self, message: str, **fields):
        self._log(logging.WARNING, message, **fields)

    def error(self, message: str, exc_info: bool = False, **fields):
        self._log(logging.ERROR, message, exc_info=exc_info, **fields)


def setup_logging(
    level: str = "INFO",
    json_format: bool = True,
    log_file: Optional[str] = None,
):
    """
    Configure the root logger.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR)
        json_format: JSON lines on stdout when True, plain text otherwise
        log_file: Optional path of an extra JSON log file
    """
    numeric_level = getattr(logging, level.upper())

    handlers: List[logging.Handler] = []

    console = logging.StreamHandler(sys.stdout)
    if json_format:
        console.setFormatter(JSONFormatter())
    else:
        console.setFormatter(logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s | %(extra_data)s",
            defaults={"extra_data": {}},
        ))
    handlers.append(console)

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(JSONFormatter())
        handlers.append(file_handler)

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(numeric_level)
    for handler in handlers:
        handler.setLevel(numeric_level)
        root.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def init_logging():
    """Configure logging from settings: JSON to a file in prod, text in dev."""
    if settings.is_production:
        setup_logging(level="INFO", json_format=True, log_file="logs/qrshield.log")
    else:
        setup_logging(level="DEBUG", json_format=False)


# ============== METRICS ==============


def _percentile(sorted_values: List[float], fraction: float) -> float:
    index = min(len(sorted_values) - 1, int(len(sorted_values) * fraction))
    return sorted_values[index]


class MetricsCollector:
    """
    Thread-safe counters and timings, kept in memory.

    Scans are decoded in the server's threadpool, so updates can arrive
    from several threads at once.

    Usage:
        metrics.increment("analysis.qr.total")
        metrics.timing("analysis.qr.latency", 0.031)
    """

    MAX_SAMPLES = 1000

    def __init__(self):
        self._lock = threading.Lock()
        self._counters: Dict[str, int] = {}
        self._timings: Dict[str, List[float]] = {}
        self._started = time.time()

    def increment(self, name: str, value: int = 1):
        with self._lock:
            self._counters[name] = self._counters.get(name, 0) + value

    def timing(self, name: str, seconds: float):
        """Record a duration, keeping only the most recent samples."""
        with self._lock:
            samples = self._timings.setdefault(name, [])
            samples.append(seconds)
            del samples[:-self.MAX_SAMPLES]

    def get_stats(self) -> Dict[str, Any]:
        with self._lock:
            counters = dict(self._counters)
            timings = {name: sorted(values) for name, values in self._timings.items() if values}

        return {
            "uptime_seconds": time.time() - self._started,
            "counters": counters,
            "timings": {
                name: {
                    "count": len(values),
                    "min": values[0],
                    "max": values[-1],
                    "avg": sum(values) / len(values),
                    "p50": _percentile(values, 0.5),
                    "p95": _percentile(values, 0.95),
                }
                for name, values in timings.items()
            },
        }

    def reset(self):
        with self._lock:
            self._counters.clear()
            self._timings.clear()


metrics = MetricsCollector()


def track_analysis(modality: str):
    """
    Decorator for pipeline functions.

    Counts calls and failures, records latency, and counts outcomes per risk
    level. The wrapped function may return an AnalysisResult or a tuple whose
    last item is one.
    """
    prefix = f"analysis.{modality}"

    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            metrics.increment(f"{prefix}.total")
            started = time.perf_counter()
            try:
                outcome = func(*args, **kwargs)
            except Exception:
                metrics.increment(f"{prefix}.errors")
                raise
            metrics.timing(f"{prefix}.latency", time.perf_counter() - started)

            result = outcome[-1] if isinstance(outcome, tuple) else outcome
            risk_level = getattr(result, "risk_level", None)
            if risk_level is not None:
                metrics.increment(f"{prefix}.risk.{risk_level.value}")
            return outcome

        return wrapper

    return decorator
