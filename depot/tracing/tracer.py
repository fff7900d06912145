"""Named spans around depot operations, on top of OpenTelemetry."""

from __future__ import annotations

import logging
from typing import Callable, Mapping, Optional, TypeVar

from opentelemetry import trace

from depot.models import MetadataNotification

_T = TypeVar("_T")
_LOGGER = logging.getLogger(__name__)

TRACER_NAME = "depot"


class TracerService:
    """Run callables inside a named span and decorate the active span."""

    def __init__(self, tracer: Optional[trace.Tracer] = None) -> None:
        self._tracer = tracer or trace.get_tracer(TRACER_NAME)

    def execute_with_trace(
        self,
        name: str,
        thunk: Callable[[], _T],
        *,
        payload: Optional[MetadataNotification] = None,
        tags: Optional[Mapping[str, str]] = None,
    ) -> _T:
        """Run ``thunk`` in a span called ``name``.

        The span is closed whether ``thunk`` returns or raises; exceptions
        are recorded on the span and propagate unchanged.
        """

        with self._tracer.start_as_current_span(name) as span:
            if payload is not None:
                span.set_attributes(payload.trace_tags())
            if tags:
                span.set_attributes(dict(tags))
            return thunk()

    def add_tags(self, tags: Mapping[str, str]) -> None:
        """Attach ``tags`` to whichever span is currently active."""
        span = trace.get_current_span()
        if not span.is_recording():
            _LOGGER.debug("No recording span to tag with %s", dict(tags))
            return
        span.set_attributes(dict(tags))
