"""Per-artifact-type handlers."""

from .base import ProjectArtifactsHandler
from .entities import EntitiesHandler, VersionedEntitiesHandler
from .file_generations import FileGenerationHandler

__all__ = [
    "EntitiesHandler",
    "FileGenerationHandler",
    "ProjectArtifactsHandler",
    "VersionedEntitiesHandler",
]
