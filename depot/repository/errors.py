"""Errors surfaced by the upstream artifact repository."""

from __future__ import annotations


class ArtifactRepositoryError(RuntimeError):
    """Raised for any failure talking to the upstream repository."""
