"""Project and project-version records kept in the projects catalog."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .versions import (validate_artifact_id, validate_group_id)


@dataclass(frozen=True)
class ProjectVersion:
    """A ``(groupId, artifactId, versionId)`` triple."""

    group_id: str
    artifact_id: str
    version_id: str

    def gav(self) -> str:
        return f"{self.group_id}:{self.artifact_id}:{self.version_id}"

    def __str__(self) -> str:
        return f"{self.group_id}-{self.artifact_id}-{self.version_id}"


@dataclass(frozen=True)
class StoreProjectData:
    """Project identity keyed by its coordinates."""

    project_id: str
    group_id: str
    artifact_id: str

    def __post_init__(self) -> None:
        validate_group_id(self.group_id)
        validate_artifact_id(self.artifact_id)

    @property
    def coordinates(self) -> Tuple[str, str]:
        return self.group_id, self.artifact_id


@dataclass(frozen=True)
class ProjectVersionData:
    """Mutable-by-copy flags and caches attached to a version record."""

    deprecated: bool = False
    dependencies: Tuple[ProjectVersion, ...] = ()
    properties: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class StoreProjectVersionData:
    """Per-version record.

    ``revision`` is owned by the store: it is the value read back from the
    last successful write and is checked on the next one.
    """

    group_id: str
    artifact_id: str
    version_id: str
    version_data: ProjectVersionData = field(default_factory=ProjectVersionData)
    evicted: bool = False
    dependency_cache: Optional[Mapping[str, Any]] = None
    updated: Optional[datetime] = None
    revision: int = 0

    @property
    def key(self) -> Tuple[str, str, str]:
        return self.group_id, self.artifact_id, self.version_id

    def mark_evicted(self) -> "StoreProjectVersionData":
        return replace(self, evicted=True)

    def mark_deprecated(self) -> "StoreProjectVersionData":
        return replace(
            self,
            version_data=replace(self.version_data, deprecated=True),
        )


@dataclass(frozen=True)
class VersionMismatch:
    """Difference between versions published upstream and those stored."""

    project_id: str
    group_id: str
    artifact_id: str
    versions_not_in_store: List[str] = field(default_factory=list)
    versions_not_in_repository: List[str] = field(default_factory=list)


def version_record_to_item(record: StoreProjectVersionData) -> Dict[str, Any]:
    """Serialize a version record to the persisted document layout."""

    item: Dict[str, Any] = {
        "groupId": record.group_id,
        "artifactId": record.artifact_id,
        "versionId": record.version_id,
        "evicted": record.evicted,
        "versionData": {
            "deprecated": record.version_data.deprecated,
            "dependencies": [
                {
                    "groupId": dependency.group_id,
                    "artifactId": dependency.artifact_id,
                    "versionId": dependency.version_id,
                }
                for dependency in record.version_data.dependencies
            ],
            "properties": dict(record.version_data.properties),
        },
        "revision": record.revision,
    }
    if record.dependency_cache is not None:
        item["dependencyCache"] = dict(record.dependency_cache)
    if record.updated is not None:
        item["updated"] = record.updated.isoformat()
    return item


def version_record_from_item(item: Mapping[str, Any]) -> StoreProjectVersionData:
    """Inverse of :func:`version_record_to_item`."""

    version_data_raw = item.get("versionData") or {}
    dependencies = tuple(
        ProjectVersion(
            group_id=raw["groupId"],
            artifact_id=raw["artifactId"],
            version_id=raw["versionId"],
        )
        for raw in version_data_raw.get("dependencies") or []
    )
    updated_raw = item.get("updated")
    return StoreProjectVersionData(
        group_id=item["groupId"],
        artifact_id=item["artifactId"],
        version_id=item["versionId"],
        version_data=ProjectVersionData(
            deprecated=bool(version_data_raw.get("deprecated", False)),
            dependencies=dependencies,
            properties=dict(version_data_raw.get("properties") or {}),
        ),
        evicted=bool(item.get("evicted", False)),
        dependency_cache=item.get("dependencyCache"),
        updated=datetime.fromisoformat(updated_raw) if updated_raw else None,
        revision=int(item.get("revision", 0)),
    )
