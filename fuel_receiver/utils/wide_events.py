"""
Wide Events (Canonical Log Lines) - Structured Logging Utility

Emit ONE comprehensive JSON event per operation (an ingest request, a
device warm start) instead of a trail of log lines. Errors, slow operations
and detected fuel activities are always kept; other successful operations
are sampled.
"""

import random
import time
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import structlog

structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer(),
    ],
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

# Business metrics that force an event to be emitted
CRITICAL_EVENTS = (
    "fuel_fill_detected",
    "fuel_drain_detected",
    "warm_start_failed",
)


class WideEvent:
    """
    Accumulates context throughout an operation, then emits one log event.

    Usage:
        event = WideEvent("fuel_readings_upload", trace_id=str(device_id))
        event.add_context(device_id=device_id)
        event.add_business_metric("readings", 12)

        with event.timer("process"):
            processor.process(reading)

        event.emit()
    """

    def __init__(self, operation: str, request_id: Optional[str] = None, trace_id: Optional[str] = None):
        self.operation = operation
        self._started_at = time.time()
        self.context: Dict[str, Any] = {
            "operation": operation,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "request_id": request_id or str(uuid.uuid4()),
        }

        if trace_id:
            self.context["trace_id"] = trace_id

        self.logger = structlog.get_logger("fuel_receiver.events")

    def add_context(self, **kwargs) -> "WideEvent":
        """Add high-cardinality context fields (device_id, sensor_id, ...)."""
        self.context.update(kwargs)
        return self

    def add_business_metric(self, key: str, value: Any) -> "WideEvent":
        """Add business metrics (readings processed, activities detected, ...)."""
        self.context.setdefault("business_metrics", {})[key] = value
        return self

    def increment_metric(self, key: str, amount: int = 1) -> "WideEvent":
        metrics = self.context.setdefault("business_metrics", {})
        metrics[key] = metrics.get(key, 0) + amount
        return self

    def add_technical_metric(self, key: str, value: Any) -> "WideEvent":
        self.context.setdefault("technical_metrics", {})[key] = value
        return self

    def add_error(self, error: Exception, **kwargs) -> "WideEvent":
        self.context["error"] = {
            "type": type(error).__name__,
            "message": str(error),
            "details": kwargs,
        }
        self.context["success"] = False
        return self

    def mark_success(self) -> "WideEvent":
        self.context["success"] = True
        return self

    def mark_failure(self, reason: str) -> "WideEvent":
        self.context["success"] = False
        self.context["failure_reason"] = reason
        return self

    @contextmanager
    def timer(self, operation_name: str):
        """Time a step; durations accumulate under ``performance_breakdown``."""
        start = time.time()
        try:
            yield
        finally:
            duration_ms = (time.time() - start) * 1000
            breakdown = self.context.setdefault("performance_breakdown", {})
            key = f"{operation_name}_ms"
            breakdown[key] = round(breakdown.get(key, 0) + duration_ms, 2)

    def set_duration(self) -> "WideEvent":
        """Record the elapsed time since the event was created."""
        self.context["duration_ms"] = round((time.time() - self._started_at) * 1000, 2)
        return self

    def should_emit(self, sample_rate: float = 0.05, slow_threshold_ms: float = 1000) -> bool:
        """
        Tail sampling:
        - Always emit errors
        - Always emit slow operations (>slow_threshold_ms)
        - Always emit detected fuel activities and warm start failures
        - Sample everything else at sample_rate
        """
        if not self.context.get("success", True):
            return True

        if self.context.get("duration_ms", 0) > slow_threshold_ms:
            return True

        business_metrics = self.context.get("business_metrics", {})
        if any(business_metrics.get(event) for event in CRITICAL_EVENTS):
            return True

        return random.random() < sample_rate

    def emit(self, level: str = "info", force: bool = False) -> None:
        self.set_duration()

        if not force and not self.should_emit():
            return

        log_method = getattr(self.logger, level, self.logger.info)
        log_method(f"{self.operation}_complete", **self.context)


@contextmanager
def track_operation(operation: str, **initial_context):
    """
    Track an operation with a wide event that is always emitted.

    Usage:
        with track_operation("fuel_warm_start", device_id=7) as event:
            event.add_business_metric("readings_replayed", 1440)
    """
    event = WideEvent(operation)
    event.add_context(**initial_context)

    try:
        yield event
        event.mark_success()
    except Exception as e:
        event.add_error(e)
        event.mark_failure(str(e))
        raise
    finally:
        event.emit(level="error" if not event.context.get("success", True) else "info", force=True)


def log_fuel_activity(activity, **kwargs) -> None:
    """Log a detected fill or drain."""
    event = WideEvent("fuel_activity", trace_id=str(activity.device_id))
    event.add_context(activity=activity.to_dict(), **kwargs)
    metric = "fuel_fill_detected" if activity.activity_type.value == "FUEL_FILL" else "fuel_drain_detected"
    event.add_business_metric(metric, True)
    event.mark_success()
    event.emit(force=True)
