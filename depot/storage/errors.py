"""Common repository errors used across storage adapters."""

from __future__ import annotations


class RepositoryError(RuntimeError):
    """Base class for storage layer failures."""


class ValidationError(RepositoryError):
    """Raised when a record fails validation before it is written."""


class RecordNotFound(RepositoryError):
    """Raised when a requested record does not exist."""


class ConcurrentUpdateError(RepositoryError):
    """Raised when a write loses the optimistic revision check."""


class StoreUnavailableError(RepositoryError):
    """Raised when the backing store is temporarily unavailable."""
