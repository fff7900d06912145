"""Span plus success/error counter around one operation."""

from __future__ import annotations

from typing import Callable, Optional, TypeVar

from depot.models import MetadataNotification

from .metrics import PrometheusMetrics
from .tracer import TracerService

_T = TypeVar("_T")


def execute_counted(
    tracer: TracerService,
    metrics: PrometheusMetrics,
    name: str,
    thunk: Callable[[], _T],
    *,
    payload: Optional[MetadataNotification] = None,
) -> _T:
    """Trace ``thunk`` as ``name`` and count how it ended."""

    try:
        result = tracer.execute_with_trace(name, thunk, payload=payload)
    except Exception:
        metrics.increment_error_count(name)
        raise
    metrics.increment_count(name)
    return result
