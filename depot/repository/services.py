"""Repository façade combining the upstream driver with the catalog."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List

from depot.models import (ArtifactType, ProjectVersion, VersionId,
                          VersionMismatch)
from depot.projects import ProjectsService

from .base import ArtifactRepository
from .errors import ArtifactRepositoryError

_LOGGER = logging.getLogger(__name__)


class RepositoryServices:
    """Upstream lookups plus the upstream-versus-store comparison."""

    def __init__(
        self, repository: ArtifactRepository, projects: ProjectsService
    ) -> None:
        self._repository = repository
        self._projects = projects

    def find_versions(self, group_id: str, artifact_id: str) -> List[VersionId]:
        return self._repository.find_versions(group_id, artifact_id)

    def find_files(
        self,
        artifact_type: ArtifactType,
        group_id: str,
        artifact_id: str,
        version_id: str,
    ) -> List[Path]:
        return self._repository.find_files(
            artifact_type, group_id, artifact_id, version_id
        )

    def find_dependencies(
        self, group_id: str, artifact_id: str, version_id: str
    ) -> List[ProjectVersion]:
        return self._repository.find_dependencies(
            group_id, artifact_id, version_id
        )

    def are_valid_coordinates(self, group_id: str, artifact_id: str) -> bool:
        return self._repository.are_valid_coordinates(group_id, artifact_id)

    def find_versions_mismatches(self) -> List[VersionMismatch]:
        """Compare upstream and stored versions for every known project.

        Projects whose upstream listing fails are logged and left out.
        Evicted versions count as stored so they are not fetched again.
        """

        mismatches: List[VersionMismatch] = []
        for project in self._projects.get_all_project_coordinates():
            try:
                upstream = set(
                    self._repository.find_versions(
                        project.group_id, project.artifact_id
                    )
                )
            except ArtifactRepositoryError as exc:
                _LOGGER.error(
                    "Skipping mismatch check for %s-%s: %s",
                    project.group_id,
                    project.artifact_id,
                    exc,
                )
                continue
            stored = set()
            for version_id in self._projects.get_versions(
                project.group_id, project.artifact_id, include_evicted=True
            ):
                try:
                    stored.add(VersionId.parse(version_id))
                except ValueError:
                    continue
            not_in_store = sorted(upstream - stored)
            not_in_repository = sorted(stored - upstream)
            if not not_in_store and not not_in_repository:
                continue
            mismatches.append(
                VersionMismatch(
                    project_id=project.project_id,
                    group_id=project.group_id,
                    artifact_id=project.artifact_id,
                    versions_not_in_store=[
                        str(version) for version in not_in_store
                    ],
                    versions_not_in_repository=[
                        str(version) for version in not_in_repository
                    ],
                )
            )
        return mismatches
