"""Tracing and metrics adapters."""

from .instrumentation import execute_counted
from .metrics import PrometheusMetrics
from .tracer import TracerService

__all__ = ["PrometheusMetrics", "TracerService", "execute_counted"]
