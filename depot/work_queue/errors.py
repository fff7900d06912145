"""Errors raised by work queue adapters."""

from __future__ import annotations


class QueueError(RuntimeError):
    """Raised when a notification cannot be pushed, pulled or acknowledged."""
