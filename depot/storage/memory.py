"""In-memory store implementations for development and tests."""

from __future__ import annotations

import threading
from dataclasses import replace
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Tuple

from depot.models import (StoredEntity, StoredFileGeneration,
                          StoreProjectData, StoreProjectVersionData)

from .base import (EntitiesStore, FileGenerationsStore, ProjectsStore,
                   ProjectsVersionsStore)
from .errors import ConcurrentUpdateError, ValidationError

_VersionKey = Tuple[str, str, str]


class InMemoryProjectsStore(ProjectsStore):
    """Dictionary-backed project store."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._projects: Dict[Tuple[str, str], StoreProjectData] = {}

    def find(
        self, group_id: str, artifact_id: str
    ) -> Optional[StoreProjectData]:
        with self._lock:
            return self._projects.get((group_id, artifact_id))

    def get_all(self) -> Sequence[StoreProjectData]:
        with self._lock:
            projects = list(self._projects.values())
        projects.sort(key=lambda p: (p.group_id, p.artifact_id))
        return projects

    def create_or_update(self, project: StoreProjectData) -> StoreProjectData:
        if not project.project_id:
            raise ValidationError("projectId must be provided")
        with self._lock:
            self._projects[project.coordinates] = project
        return project

    def delete(self, group_id: str, artifact_id: str) -> bool:
        with self._lock:
            return self._projects.pop((group_id, artifact_id), None) is not None


class InMemoryProjectsVersionsStore(ProjectsVersionsStore):
    """Version records guarded by a revision counter."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: Dict[_VersionKey, StoreProjectVersionData] = {}

    def find(
        self, group_id: str, artifact_id: str, version_id: str
    ) -> Optional[StoreProjectVersionData]:
        with self._lock:
            return self._records.get((group_id, artifact_id, version_id))

    def find_all(
        self, group_id: str, artifact_id: str
    ) -> Sequence[StoreProjectVersionData]:
        with self._lock:
            return [
                record
                for key, record in self._records.items()
                if key[0] == group_id and key[1] == artifact_id
            ]

    def create_or_update(
        self, record: StoreProjectVersionData
    ) -> StoreProjectVersionData:
        with self._lock:
            current = self._records.get(record.key)
            current_revision = current.revision if current is not None else 0
            if record.revision != current_revision:
                raise ConcurrentUpdateError(
                    f"Version record {'-'.join(record.key)} changed "
                    f"(expected revision {record.revision}, "
                    f"found {current_revision})"
                )
            stored = replace(
                record,
                revision=current_revision + 1,
                updated=datetime.now(timezone.utc),
            )
            self._records[record.key] = stored
            return stored

    def delete(self, group_id: str, artifact_id: str, version_id: str) -> bool:
        with self._lock:
            removed = self._records.pop(
                (group_id, artifact_id, version_id), None
            )
        return removed is not None

    def delete_all(self, group_id: str, artifact_id: str) -> int:
        with self._lock:
            keys = [
                key
                for key in self._records
                if key[0] == group_id and key[1] == artifact_id
            ]
            for key in keys:
                del self._records[key]
        return len(keys)


class InMemoryEntitiesStore(EntitiesStore):
    """Entity rows keyed by triple, versioned flag and element path."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._rows: Dict[Tuple[str, str, str, bool, str], StoredEntity] = {}

    def create_or_update(self, stored: StoredEntity) -> None:
        key = (
            stored.group_id,
            stored.artifact_id,
            stored.version_id,
            stored.versioned,
            stored.entity.path,
        )
        with self._lock:
            self._rows[key] = stored

    def find(
        self,
        group_id: str,
        artifact_id: str,
        version_id: str,
        *,
        versioned: bool = False,
    ) -> Sequence[StoredEntity]:
        prefix = (group_id, artifact_id, version_id, versioned)
        with self._lock:
            rows = [row for key, row in self._rows.items() if key[:4] == prefix]
        rows.sort(key=lambda row: row.entity.path)
        return rows

    def delete(
        self,
        group_id: str,
        artifact_id: str,
        version_id: str,
        *,
        versioned: bool = False,
    ) -> int:
        prefix = (group_id, artifact_id, version_id, versioned)
        with self._lock:
            keys = [key for key in self._rows if key[:4] == prefix]
            for key in keys:
                del self._rows[key]
        return len(keys)


class InMemoryFileGenerationsStore(FileGenerationsStore):
    """Generation rows keyed by triple, element path and file path."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._rows: Dict[Tuple[str, str, str, str, str], StoredFileGeneration]
        self._rows = {}

    def create_or_update(self, stored: StoredFileGeneration) -> None:
        key = (
            stored.group_id,
            stored.artifact_id,
            stored.version_id,
            stored.path,
            stored.file.path,
        )
        with self._lock:
            self._rows[key] = stored

    def find(
        self, group_id: str, artifact_id: str, version_id: str
    ) -> Sequence[StoredFileGeneration]:
        prefix = (group_id, artifact_id, version_id)
        with self._lock:
            rows: List[StoredFileGeneration] = [
                row for key, row in self._rows.items() if key[:3] == prefix
            ]
        rows.sort(key=lambda row: (row.path, row.file.path))
        return rows

    def delete(self, group_id: str, artifact_id: str, version_id: str) -> int:
        prefix = (group_id, artifact_id, version_id)
        with self._lock:
            keys = [key for key in self._rows if key[:3] == prefix]
            for key in keys:
                del self._rows[key]
        return len(keys)
