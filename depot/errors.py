"""Errors raised across the depot orchestration layer."""

from __future__ import annotations


class InvalidArgumentError(ValueError):
    """Raised when a caller supplies coordinates the depot does not know."""


class UnsupportedOperationError(NotImplementedError):
    """Raised by operations that are declared but not available yet."""
