"""
Metadata Depot Repository
Introductory remarks: This module is part of the metadata depot codebase.

Shared fixtures: isolated environment, tracing, metrics and a scripted
upstream repository.
"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Tuple

import pytest
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import SimpleSpanProcessor
from opentelemetry.sdk.trace.export.in_memory_span_exporter import \
    InMemorySpanExporter
from prometheus_client import CollectorRegistry

from depot.models import ArtifactType, ProjectVersion, VersionId
from depot.projects import ProjectsService
from depot.repository.errors import ArtifactRepositoryError
from depot.storage import DepotStores
from depot.tracing import PrometheusMetrics, TracerService

_DEPOT_VARIABLES = (
    "DEPOT_REFRESH_MAX_WORKERS",
    "DEPOT_REPOSITORY_URL",
    "DEPOT_REPOSITORY_TIMEOUT",
    "DEPOT_DOWNLOAD_DIR",
    "DEPOT_PROJECTS_TABLE",
    "DEPOT_VERSIONS_TABLE",
    "DEPOT_ENTITIES_TABLE",
    "DEPOT_GENERATIONS_TABLE",
    "DEPOT_QUEUE_URL",
)


@pytest.fixture(autouse=True)
def _default_runtime_env(
    monkeypatch: pytest.MonkeyPatch,
    tmp_path_factory: pytest.TempPathFactory,
) -> None:
    for name in _DEPOT_VARIABLES:
        monkeypatch.delenv(name, raising=False)
    log_dir = tmp_path_factory.mktemp("logs")
    monkeypatch.setenv("LOG_FILE", str(Path(log_dir) / "depot.log"))


@pytest.fixture
def span_exporter() -> InMemorySpanExporter:
    return InMemorySpanExporter()


@pytest.fixture
def tracer(span_exporter: InMemorySpanExporter) -> TracerService:
    provider = TracerProvider()
    provider.add_span_processor(SimpleSpanProcessor(span_exporter))
    return TracerService(provider.get_tracer("depot-tests"))


@pytest.fixture
def metrics() -> PrometheusMetrics:
    return PrometheusMetrics(CollectorRegistry())


@pytest.fixture
def stores() -> DepotStores:
    return DepotStores()


@pytest.fixture
def projects(stores: DepotStores) -> ProjectsService:
    return ProjectsService(stores.projects, stores.versions)


class FakeArtifactRepository:
    """Scripted upstream: versions, files and dependencies per coordinate."""

    def __init__(self) -> None:
        self.versions: Dict[Tuple[str, str], List[str]] = {}
        self.failing: Dict[Tuple[str, str], str] = {}
        self.invalid: set = set()
        self.files: Dict[Tuple[ArtifactType, str, str, str], List[Path]] = {}
        self.dependencies: Dict[
            Tuple[str, str, str], List[ProjectVersion]
        ] = {}
        self.file_requests: List[Tuple[ArtifactType, str, str, str]] = []

    def find_versions(self, group_id: str, artifact_id: str) -> List[VersionId]:
        key = (group_id, artifact_id)
        if key in self.failing:
            raise ArtifactRepositoryError(self.failing[key])
        return sorted(
            VersionId.parse(value) for value in self.versions.get(key, [])
        )

    def find_files(
        self,
        artifact_type: ArtifactType,
        group_id: str,
        artifact_id: str,
        version_id: str,
    ) -> List[Path]:
        key = (artifact_type, group_id, artifact_id, version_id)
        self.file_requests.append(key)
        return list(self.files.get(key, []))

    def find_dependencies(
        self, group_id: str, artifact_id: str, version_id: str
    ) -> List[ProjectVersion]:
        return list(
            self.dependencies.get((group_id, artifact_id, version_id), [])
        )

    def are_valid_coordinates(self, group_id: str, artifact_id: str) -> bool:
        return (group_id, artifact_id) not in self.invalid


@pytest.fixture
def upstream() -> FakeArtifactRepository:
    return FakeArtifactRepository()

