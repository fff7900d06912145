"""Artifact handlers, their registry and archive readers."""

from .handlers import (EntitiesHandler, FileGenerationHandler,
                       ProjectArtifactsHandler, VersionedEntitiesHandler)
from .loaders import (ArtifactLoadingError, EntityLoader,
                      FileGenerationsProvider, load_entities)
from .registry import HandlerRegistry

__all__ = [
    "ArtifactLoadingError",
    "EntitiesHandler",
    "EntityLoader",
    "FileGenerationHandler",
    "FileGenerationsProvider",
    "HandlerRegistry",
    "ProjectArtifactsHandler",
    "VersionedEntitiesHandler",
    "load_entities",
]
