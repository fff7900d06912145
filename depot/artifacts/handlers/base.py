"""Base class for per-artifact-type handlers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Sequence

from depot.models import (ArtifactType, MetadataEventResponse,
                          StoreProjectData)


class ProjectArtifactsHandler(ABC):
    """Persists and removes the rows one artifact type owns.

    Both operations must be idempotent: refresh with the same files leaves
    the same rows behind, and deleting an absent triple is a no-op.
    """

    artifact_type: ArtifactType

    def __init__(self, artifact_type: ArtifactType) -> None:
        self.artifact_type = artifact_type

    @abstractmethod
    def refresh(
        self,
        project: StoreProjectData,
        version_id: str,
        files: Sequence[Path],
    ) -> MetadataEventResponse:
        """Store the downloaded ``files`` for the project version."""

    @abstractmethod
    def delete(self, group_id: str, artifact_id: str, version_id: str) -> None:
        """Remove every row this handler owns for the triple."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(type={self.artifact_type.value!r})"
