"""Aggregated outcome of refresh and purge operations."""

from __future__ import annotations

import threading
from typing import Any, Dict, Iterable, List


class MetadataEventResponse:
    """Ordered messages and errors collected across a fan-out.

    Errors mark the response as failed but never stop the caller from
    collecting further results. Appends are guarded so worker threads may
    share one response.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._messages: List[str] = []
        self._errors: List[str] = []

    @property
    def messages(self) -> List[str]:
        with self._lock:
            return list(self._messages)

    @property
    def errors(self) -> List[str]:
        with self._lock:
            return list(self._errors)

    @property
    def has_errors(self) -> bool:
        with self._lock:
            return bool(self._errors)

    @property
    def failed(self) -> bool:
        return self.has_errors

    def add_message(self, message: str) -> "MetadataEventResponse":
        with self._lock:
            self._messages.append(message)
        return self

    def add_messages(self, messages: Iterable[str]) -> "MetadataEventResponse":
        with self._lock:
            self._messages.extend(messages)
        return self

    def add_error(self, error: str) -> "MetadataEventResponse":
        with self._lock:
            self._errors.append(error)
        return self

    def add_errors(self, errors: Iterable[str]) -> "MetadataEventResponse":
        with self._lock:
            self._errors.extend(errors)
        return self

    def combine(self, other: "MetadataEventResponse") -> "MetadataEventResponse":
        """Append ``other``'s messages and errors to this response."""
        if other is self:
            return self
        messages = other.messages
        errors = other.errors
        with self._lock:
            self._messages.extend(messages)
            self._errors.extend(errors)
        return self

    def to_dict(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "messages": list(self._messages),
                "errors": list(self._errors),
                "failed": bool(self._errors),
            }

    def __repr__(self) -> str:
        with self._lock:
            return (
                f"MetadataEventResponse(messages={len(self._messages)}, "
                f"errors={len(self._errors)})"
            )
