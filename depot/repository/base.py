"""Contract for upstream artifact repository drivers."""

from __future__ import annotations

from pathlib import Path
from typing import List, Protocol

from depot.models import ArtifactType, ProjectVersion, VersionId


class ArtifactRepository(Protocol):
    """Enumerates and downloads what a project has published upstream."""

    def find_versions(self, group_id: str, artifact_id: str) -> List[VersionId]:
        """Published versions, ascending.

        Raises ArtifactRepositoryError when the listing cannot be read.
        """

    def find_files(
        self,
        artifact_type: ArtifactType,
        group_id: str,
        artifact_id: str,
        version_id: str,
    ) -> List[Path]:
        """Download the files of one artifact type and return local paths."""

    def find_dependencies(
        self, group_id: str, artifact_id: str, version_id: str
    ) -> List[ProjectVersion]:
        """Return the direct dependencies declared by a version."""

    def are_valid_coordinates(self, group_id: str, artifact_id: str) -> bool:
        """Return ``True`` when the coordinates are well formed and indexed."""
