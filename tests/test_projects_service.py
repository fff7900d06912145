from __future__ import annotations

from typing import List

import pytest

from depot.errors import InvalidArgumentError
from depot.models import (MASTER_SNAPSHOT, StoreProjectData,
                          StoreProjectVersionData, VersionId)
from depot.projects import ProjectsService
from depot.storage.errors import ConcurrentUpdateError
from depot.storage.memory import (InMemoryProjectsStore,
                                  InMemoryProjectsVersionsStore)


def _seed(projects: ProjectsService, *versions: str) -> None:
    for version in versions:
        projects.create_or_update(StoreProjectVersionData("g", "a", version))


def test_check_exists_raises_for_unknown_project(
    projects: ProjectsService,
) -> None:
    with pytest.raises(InvalidArgumentError) as excinfo:
        projects.check_exists("g", "a")

    assert str(excinfo.value) == "can't find project for g-a"


def test_get_versions_sorted_without_snapshot_or_evicted(
    projects: ProjectsService,
) -> None:
    _seed(projects, "2.0.0", MASTER_SNAPSHOT, "1.10.0", "1.2.0")
    projects.update_version(
        "g", "a", "1.2.0", StoreProjectVersionData.mark_evicted
    )

    assert projects.get_versions("g", "a") == ["1.10.0", "2.0.0"]
    assert projects.get_versions("g", "a", include_evicted=True) == [
        "1.2.0",
        "1.10.0",
        "2.0.0",
    ]


def test_latest_version_counts_evicted_versions(
    projects: ProjectsService,
) -> None:
    assert projects.get_latest_version("g", "a") is None
    _seed(projects, "1.0.0", "3.0.0")
    projects.update_version(
        "g", "a", "3.0.0", StoreProjectVersionData.mark_evicted
    )

    assert projects.get_latest_version("g", "a") == VersionId.parse("3.0.0")


def test_delete_requires_existing_record(projects: ProjectsService) -> None:
    _seed(projects, "1.0.0")

    response = projects.delete("g", "a", "1.0.0")

    assert response.messages == ["g-a-1.0.0 version record deleted"]
    assert projects.find("g", "a", "1.0.0") is None
    with pytest.raises(InvalidArgumentError):
        projects.delete("g", "a", "1.0.0")


def test_delete_project_removes_versions(projects: ProjectsService) -> None:
    projects.create_or_update_project(StoreProjectData("PROD-1", "g", "a"))
    _seed(projects, "1.0.0", "2.0.0")

    response = projects.delete_project("g", "a")

    assert response.messages == ["g-a deleted with 2 versions"]
    assert projects.find_coordinates("g", "a") is None
    assert projects.get_versions("g", "a") == []


class _RacingVersionsStore(InMemoryProjectsVersionsStore):
    """Lets another writer win the first ``conflicts`` writes."""

    def __init__(self, conflicts: int) -> None:
        super().__init__()
        self.conflicts = conflicts
        self.attempts: List[int] = []

    def create_or_update(
        self, record: StoreProjectVersionData
    ) -> StoreProjectVersionData:
        self.attempts.append(record.revision)
        if self.conflicts and record.revision > 0:
            self.conflicts -= 1
            current = self.find(*record.key)
            super().create_or_update(current)
        return super().create_or_update(record)


def test_update_version_retries_once_after_conflict() -> None:
    versions = _RacingVersionsStore(conflicts=1)
    projects = ProjectsService(InMemoryProjectsStore(), versions)
    _seed(projects, "1.0.0")

    updated = projects.update_version(
        "g", "a", "1.0.0", StoreProjectVersionData.mark_deprecated
    )

    assert updated.version_data.deprecated is True
    assert versions.attempts == [0, 1, 2]


def test_update_version_gives_up_after_retries() -> None:
    versions = _RacingVersionsStore(conflicts=5)
    projects = ProjectsService(InMemoryProjectsStore(), versions)
    _seed(projects, "1.0.0")

    with pytest.raises(ConcurrentUpdateError):
        projects.update_version(
            "g", "a", "1.0.0", StoreProjectVersionData.mark_deprecated
        )

    assert projects.find("g", "a", "1.0.0").version_data.deprecated is False


def test_update_version_requires_record(projects: ProjectsService) -> None:
    with pytest.raises(InvalidArgumentError):
        projects.update_version(
            "g", "a", "9.9.9", StoreProjectVersionData.mark_evicted
        )
