"""Abstract store interfaces for the depot document store."""

from __future__ import annotations

from typing import Optional, Protocol, Sequence

from depot.models import (StoredEntity, StoredFileGeneration,
                          StoreProjectData, StoreProjectVersionData)


class ProjectsStore(Protocol):
    """Project identities keyed by ``(groupId, artifactId)``."""

    def find(
        self, group_id: str, artifact_id: str
    ) -> Optional[StoreProjectData]:
        """Return the project or ``None``."""

    def get_all(self) -> Sequence[StoreProjectData]:
        """Return every known project."""

    def create_or_update(self, project: StoreProjectData) -> StoreProjectData:
        """Insert or replace a project record."""

    def delete(self, group_id: str, artifact_id: str) -> bool:
        """Remove a project; return ``False`` when it was absent."""


class ProjectsVersionsStore(Protocol):
    """Version records with optimistic revision checks."""

    def find(
        self, group_id: str, artifact_id: str, version_id: str
    ) -> Optional[StoreProjectVersionData]:
        """Return the version record or ``None``."""

    def find_all(
        self, group_id: str, artifact_id: str
    ) -> Sequence[StoreProjectVersionData]:
        """Return all version records of a project, snapshot included."""

    def create_or_update(
        self, record: StoreProjectVersionData
    ) -> StoreProjectVersionData:
        """
        Write ``record`` if its revision matches the stored one.

        A new record must carry revision 0. Raises ConcurrentUpdateError
        when another writer got there first.
        """

    def delete(self, group_id: str, artifact_id: str, version_id: str) -> bool:
        """Remove one version record; return ``False`` when absent."""

    def delete_all(self, group_id: str, artifact_id: str) -> int:
        """Remove every version record of a project."""


class EntitiesStore(Protocol):
    """Entity rows, split between plain and versioned entities."""

    def create_or_update(self, stored: StoredEntity) -> None:
        """Upsert one entity keyed by triple, versioned flag and path."""

    def find(
        self,
        group_id: str,
        artifact_id: str,
        version_id: str,
        *,
        versioned: bool = False,
    ) -> Sequence[StoredEntity]:
        """Return the entities stored for a triple."""

    def delete(
        self,
        group_id: str,
        artifact_id: str,
        version_id: str,
        *,
        versioned: bool = False,
    ) -> int:
        """Remove the entities of a triple; return the number removed."""


class FileGenerationsStore(Protocol):
    """Generated file rows."""

    def create_or_update(self, stored: StoredFileGeneration) -> None:
        """Upsert one generation keyed by triple, element and file path."""

    def find(
        self, group_id: str, artifact_id: str, version_id: str
    ) -> Sequence[StoredFileGeneration]:
        """Return the generations stored for a triple."""

    def delete(self, group_id: str, artifact_id: str, version_id: str) -> int:
        """Remove the generations of a triple; return the number removed."""
