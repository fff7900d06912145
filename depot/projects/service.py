"""Projects catalog: project identities and per-version records."""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Sequence

from depot.errors import InvalidArgumentError
from depot.models import (MetadataEventResponse, StoreProjectData,
                          StoreProjectVersionData, VersionId, is_snapshot)
from depot.storage.base import ProjectsStore, ProjectsVersionsStore
from depot.storage.errors import ConcurrentUpdateError

_LOGGER = logging.getLogger(__name__)

VersionUpdate = Callable[[StoreProjectVersionData], StoreProjectVersionData]


class ProjectsService:
    """Read and maintain project and project-version records."""

    def __init__(
        self,
        projects: ProjectsStore,
        versions: ProjectsVersionsStore,
        *,
        update_retries: int = 1,
    ) -> None:
        self._projects = projects
        self._versions = versions
        self._update_retries = max(0, update_retries)

    # -- projects -----------------------------------------------------------

    def find_coordinates(
        self, group_id: str, artifact_id: str
    ) -> Optional[StoreProjectData]:
        return self._projects.find(group_id, artifact_id)

    def get_all_project_coordinates(self) -> List[StoreProjectData]:
        return list(self._projects.get_all())

    def check_exists(self, group_id: str, artifact_id: str) -> StoreProjectData:
        """Return the project or raise InvalidArgumentError."""
        project = self._projects.find(group_id, artifact_id)
        if project is None:
            raise InvalidArgumentError(
                f"can't find project for {group_id}-{artifact_id}"
            )
        return project

    def create_or_update_project(
        self, project: StoreProjectData
    ) -> StoreProjectData:
        return self._projects.create_or_update(project)

    def delete_project(
        self, group_id: str, artifact_id: str
    ) -> MetadataEventResponse:
        """Remove a project together with all of its version records."""
        self.check_exists(group_id, artifact_id)
        response = MetadataEventResponse()
        removed = self._versions.delete_all(group_id, artifact_id)
        self._projects.delete(group_id, artifact_id)
        response.add_message(
            f"{group_id}-{artifact_id} deleted with {removed} versions"
        )
        _LOGGER.info(
            "Deleted project %s-%s and %d versions",
            group_id,
            artifact_id,
            removed,
        )
        return response

    # -- versions -----------------------------------------------------------

    def find(
        self, group_id: str, artifact_id: str, version_id: str
    ) -> Optional[StoreProjectVersionData]:
        return self._versions.find(group_id, artifact_id, version_id)

    def get_versions(
        self,
        group_id: str,
        artifact_id: str,
        *,
        include_evicted: bool = False,
    ) -> List[str]:
        """Concrete versions, ascending. The snapshot is never included."""
        return [
            version.to_version_id_string()
            for version in self._parsed_versions(
                self._versions.find_all(group_id, artifact_id),
                include_evicted=include_evicted,
            )
        ]

    def get_latest_version(
        self, group_id: str, artifact_id: str
    ) -> Optional[VersionId]:
        """Highest concrete version ever stored, evicted ones included."""
        versions = self._parsed_versions(
            self._versions.find_all(group_id, artifact_id),
            include_evicted=True,
        )
        return versions[-1] if versions else None

    def create_or_update(
        self, record: StoreProjectVersionData
    ) -> StoreProjectVersionData:
        return self._versions.create_or_update(record)

    def update_version(
        self,
        group_id: str,
        artifact_id: str,
        version_id: str,
        update: VersionUpdate,
    ) -> StoreProjectVersionData:
        """Read-modify-write a version record under the revision check.

        The record is re-read and ``update`` re-applied when another writer
        wins the race; after the configured retries the conflict propagates.
        """

        attempt = 0
        while True:
            record = self._require_version(group_id, artifact_id, version_id)
            try:
                return self._versions.create_or_update(update(record))
            except ConcurrentUpdateError:
                if attempt >= self._update_retries:
                    raise
                attempt += 1
                _LOGGER.warning(
                    "Concurrent update on %s-%s-%s, retrying",
                    group_id,
                    artifact_id,
                    version_id,
                )

    def delete(
        self, group_id: str, artifact_id: str, version_id: str
    ) -> MetadataEventResponse:
        """Remove one version record; the record must exist."""
        self._require_version(group_id, artifact_id, version_id)
        response = MetadataEventResponse()
        self._versions.delete(group_id, artifact_id, version_id)
        response.add_message(
            f"{group_id}-{artifact_id}-{version_id} version record deleted"
        )
        return response

    def _require_version(
        self, group_id: str, artifact_id: str, version_id: str
    ) -> StoreProjectVersionData:
        record = self._versions.find(group_id, artifact_id, version_id)
        if record is None:
            raise InvalidArgumentError(
                f"can't find version {version_id} for project "
                f"{group_id}-{artifact_id}"
            )
        return record

    @staticmethod
    def _parsed_versions(
        records: Sequence[StoreProjectVersionData],
        *,
        include_evicted: bool,
    ) -> List[VersionId]:
        parsed: List[VersionId] = []
        for record in records:
            if is_snapshot(record.version_id):
                continue
            if record.evicted and not include_evicted:
                continue
            try:
                parsed.append(VersionId.parse(record.version_id))
            except ValueError:
                _LOGGER.warning(
                    "Skipping unparseable version %s for %s-%s",
                    record.version_id,
                    record.group_id,
                    record.artifact_id,
                )
        parsed.sort()
        return parsed
