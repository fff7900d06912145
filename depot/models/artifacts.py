"""Artifact types published for every project version."""

from __future__ import annotations

from enum import Enum


class ArtifactType(str, Enum):
    """Closed set of artifact modules a project version publishes.

    The value doubles as the Maven module suffix, so the entities of project
    ``demo`` are published as ``demo-entities``.
    """

    ENTITIES = "entities"
    VERSIONED_ENTITIES = "versioned-entities"
    FILE_GENERATIONS = "file-generation"

    def module_name(self, artifact_id: str) -> str:
        return f"{artifact_id}-{self.value}"
