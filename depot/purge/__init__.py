"""Purge orchestration."""

from .service import (DELETE_VERSION, DEPRECATE_VERSION, EVICT_OLDEST,
                      EVICT_VERSION, VERSION_DELETE_COUNTER,
                      VERSION_PURGE_COUNTER, ArtifactsPurgeService)

__all__ = [
    "DELETE_VERSION",
    "DEPRECATE_VERSION",
    "EVICT_OLDEST",
    "EVICT_VERSION",
    "VERSION_DELETE_COUNTER",
    "VERSION_PURGE_COUNTER",
    "ArtifactsPurgeService",
]
