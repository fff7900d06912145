from __future__ import annotations

import json
import zipfile
from pathlib import Path

import pytest

from depot.artifacts import (EntitiesHandler, HandlerRegistry,
                             VersionedEntitiesHandler)
from depot.models import (MASTER_SNAPSHOT, ArtifactType, MetadataNotification,
                          ProjectVersion, StoreProjectData,
                          StoreProjectVersionData)
from depot.refresh import PROCESS_VERSION_REFRESH, ProjectVersionRefreshHandler
from depot.repository import RepositoryServices
from depot.storage import DepotStores
from depot.work_queue import InMemoryQueue


def _entities_jar(path: Path, *entity_paths: str) -> Path:
    with zipfile.ZipFile(path, "w") as archive:
        for entity_path in entity_paths:
            archive.writestr(
                f"entities/{entity_path.replace('::', '/')}.json",
                json.dumps(
                    {
                        "path": entity_path,
                        "classifierPath": "meta::pure::metamodel::Class",
                        "content": {},
                    }
                ),
            )
    return path


@pytest.fixture
def worker_setup(stores: DepotStores, projects, upstream, tracer, metrics):
    registry = HandlerRegistry(
        [
            EntitiesHandler(stores.entities),
            VersionedEntitiesHandler(stores.entities),
        ]
    ).freeze()
    queue = InMemoryQueue()
    worker = ProjectVersionRefreshHandler(
        projects,
        RepositoryServices(upstream, projects),
        registry,
        queue,
        tracer,
        metrics,
    )
    for artifact_id in ("model", "core"):
        projects.create_or_update_project(
            StoreProjectData(f"PROD-{artifact_id}", "org.finos", artifact_id)
        )
    return worker, queue


def _notification(version_id: str = "1.0.0", **flags) -> MetadataNotification:
    return MetadataNotification(
        "PROD-model",
        "org.finos",
        "model",
        version_id,
        parent_event_id="p",
        **flags,
    )


def test_handle_stores_artifacts_and_version_record(
    tmp_path: Path, stores, projects, upstream, worker_setup, metrics
) -> None:
    worker, _ = worker_setup
    upstream.files[
        (ArtifactType.ENTITIES, "org.finos", "model", "1.0.0")
    ] = [_entities_jar(tmp_path / "e.jar", "model::A")]
    upstream.dependencies[("org.finos", "model", "1.0.0")] = [
        ProjectVersion("org.finos", "core", "2.0.0")
    ]

    response = worker.handle(_notification(full_update=True))

    assert not response.has_errors
    rows = stores.entities.find("org.finos", "model", "1.0.0")
    assert [row.entity.path for row in rows] == ["model::A"]
    record = projects.find("org.finos", "model", "1.0.0")
    assert record is not None and record.evicted is False
    assert record.version_data.dependencies == (
        ProjectVersion("org.finos", "core", "2.0.0"),
    )
    assert metrics.count(PROCESS_VERSION_REFRESH) == 1


def test_refresh_clears_eviction_and_keeps_deprecation(
    projects, worker_setup
) -> None:
    worker, _ = worker_setup
    projects.create_or_update(
        StoreProjectVersionData("org.finos", "model", "1.0.0")
        .mark_deprecated()
        .mark_evicted()
    )

    worker.handle(_notification())

    record = projects.find("org.finos", "model", "1.0.0")
    assert record.evicted is False
    assert record.version_data.deprecated is True


def test_stored_version_skipped_without_full_update(
    projects, upstream, worker_setup
) -> None:
    worker, _ = worker_setup
    projects.create_or_update(
        StoreProjectVersionData("org.finos", "model", "1.0.0")
    )

    response = worker.handle(_notification(full_update=False))

    assert response.messages == [
        "org.finos-model-1.0.0 already stored, skipping"
    ]
    assert upstream.file_requests == []


def test_snapshot_always_processed(projects, upstream, worker_setup) -> None:
    worker, _ = worker_setup
    projects.create_or_update(
        StoreProjectVersionData("org.finos", "model", MASTER_SNAPSHOT)
    )

    worker.handle(_notification(MASTER_SNAPSHOT, full_update=False))

    assert len(upstream.file_requests) == 2


def test_transitive_refresh_queues_missing_known_dependencies(
    projects, upstream, worker_setup
) -> None:
    worker, queue = worker_setup
    projects.create_or_update(
        StoreProjectVersionData("org.finos", "core", "1.0.0")
    )
    upstream.dependencies[("org.finos", "model", "1.0.0")] = [
        ProjectVersion("org.finos", "core", "1.0.0"),
        ProjectVersion("org.finos", "core", "2.0.0"),
        ProjectVersion("org.other", "unknown", "1.0.0"),
    ]

    worker.handle(_notification(full_update=True, transitive=True))

    (queued,) = queue.get_all()
    assert (queued.artifact_id, queued.version_id) == ("core", "2.0.0")
    assert queued.project_id == "PROD-core"
    assert queued.transitive is True
    assert queued.parent_event_id == "p-org.finos-model-1.0.0"


def test_handler_errors_leave_catalog_untouched(
    tmp_path: Path, projects, upstream, worker_setup
) -> None:
    worker, _ = worker_setup
    broken = tmp_path / "broken.jar"
    broken.write_text("garbage", encoding="utf-8")
    upstream.files[
        (ArtifactType.ENTITIES, "org.finos", "model", "1.0.0")
    ] = [broken]

    response = worker.handle(_notification(full_update=True))

    assert response.has_errors
    assert projects.find("org.finos", "model", "1.0.0") is None


def test_unknown_project_reported(worker_setup) -> None:
    worker, _ = worker_setup

    response = worker.handle(
        MetadataNotification("X", "org.finos", "ghost", "1.0.0")
    )

    assert response.errors == ["can't find project for org.finos-ghost"]


def test_drain_acknowledges_processed_notifications(
    projects, worker_setup
) -> None:
    worker, queue = worker_setup
    queue.push(_notification("1.0.0", full_update=True))
    queue.push(_notification("1.1.0", full_update=True))

    response = worker.drain()

    assert queue.size() == 0
    assert queue.redeliver_unacked() == 0
    assert not response.has_errors
    assert projects.get_versions("org.finos", "model") == ["1.0.0", "1.1.0"]


def test_drain_leaves_crashing_notifications_unacknowledged(
    worker_setup, monkeypatch: pytest.MonkeyPatch
) -> None:
    worker, queue = worker_setup
    queue.push(_notification(full_update=True))

    def _explode(notification: MetadataNotification) -> None:
        raise RuntimeError("store offline")

    monkeypatch.setattr(worker, "_process", _explode)

    response = worker.drain(max_items=5)

    assert response.has_errors
    assert "store offline" in response.errors[0]
    assert queue.redeliver_unacked() == 1
    assert queue.size() == 1
