"""Wire the depot services together from settings."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from depot.artifacts import (EntitiesHandler, FileGenerationHandler,
                             FileGenerationsProvider, HandlerRegistry,
                             VersionedEntitiesHandler)
from depot.config import DepotSettings
from depot.projects import ProjectsService
from depot.purge import ArtifactsPurgeService
from depot.refresh import ArtifactsRefreshService, ProjectVersionRefreshHandler
from depot.repository import (ArtifactRepository, RepositoryServices,
                              build_repository_from_env)
from depot.storage import DepotStores, build_stores_from_env
from depot.tracing import PrometheusMetrics, TracerService
from depot.work_queue import Queue, build_queue_from_env

_LOGGER = logging.getLogger(__name__)


@dataclass
class DepotApplication:
    """Fully wired services sharing one set of stores, queue and tracer."""

    settings: DepotSettings
    stores: DepotStores
    projects: ProjectsService
    repository: RepositoryServices
    registry: HandlerRegistry
    queue: Queue
    refresh: ArtifactsRefreshService
    purge: ArtifactsPurgeService
    worker: ProjectVersionRefreshHandler


def build_registry(
    stores: DepotStores, repository: RepositoryServices
) -> HandlerRegistry:
    """Register one handler per artifact type and freeze the table."""

    registry = HandlerRegistry()
    registry.register(EntitiesHandler(stores.entities))
    registry.register(VersionedEntitiesHandler(stores.entities))
    registry.register(
        FileGenerationHandler(
            repository, FileGenerationsProvider(), stores.generations
        )
    )
    return registry.freeze()


def build_application(
    settings: Optional[DepotSettings] = None,
    *,
    stores: Optional[DepotStores] = None,
    artifact_repository: Optional[ArtifactRepository] = None,
    queue: Optional[Queue] = None,
    tracer: Optional[TracerService] = None,
    metrics: Optional[PrometheusMetrics] = None,
) -> DepotApplication:
    """Build the application; explicit collaborators win over settings."""

    settings = settings or DepotSettings.from_env()
    stores = stores or build_stores_from_env(settings)
    artifact_repository = artifact_repository or build_repository_from_env(
        settings
    )
    queue = queue or build_queue_from_env(settings)
    tracer = tracer or TracerService()
    metrics = metrics or PrometheusMetrics()

    projects = ProjectsService(stores.projects, stores.versions)
    repository = RepositoryServices(artifact_repository, projects)
    registry = build_registry(stores, repository)
    _LOGGER.debug(
        "Registered handlers for %s",
        [artifact_type.value for artifact_type in registry.supported_types()],
    )
    return DepotApplication(
        settings=settings,
        stores=stores,
        projects=projects,
        repository=repository,
        registry=registry,
        queue=queue,
        refresh=ArtifactsRefreshService(
            projects,
            repository,
            queue,
            tracer,
            metrics,
            max_workers=settings.refresh_max_workers,
        ),
        purge=ArtifactsPurgeService(projects, registry, tracer, metrics),
        worker=ProjectVersionRefreshHandler(
            projects, repository, registry, queue, tracer, metrics
        ),
    )
