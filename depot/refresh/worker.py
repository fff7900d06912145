"""Queue consumer that turns refresh notifications into stored artifacts."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import List, Optional, Tuple

from depot.artifacts import HandlerRegistry
from depot.models import (MetadataEventResponse, MetadataNotification,
                          ProjectVersion, ProjectVersionData,
                          StoreProjectData, StoreProjectVersionData,
                          build_parent_event_id, is_snapshot)
from depot.projects import ProjectsService
from depot.repository.errors import ArtifactRepositoryError
from depot.repository.services import RepositoryServices
from depot.tracing import PrometheusMetrics, TracerService, execute_counted
from depot.work_queue import Queue

PROCESS_VERSION_REFRESH = "processVersionRefresh"

_LOGGER = logging.getLogger(__name__)


class ProjectVersionRefreshHandler:
    """Process one notification: fetch files, run handlers, update catalog.

    Handler failures end up as response errors and leave the version record
    untouched so a redelivery can try again.
    """

    def __init__(
        self,
        projects: ProjectsService,
        repository: RepositoryServices,
        registry: HandlerRegistry,
        queue: Queue,
        tracer: TracerService,
        metrics: PrometheusMetrics,
    ) -> None:
        self._projects = projects
        self._repository = repository
        self._registry = registry
        self._queue = queue
        self._tracer = tracer
        self._metrics = metrics

    def handle(
        self, notification: MetadataNotification
    ) -> MetadataEventResponse:
        return execute_counted(
            self._tracer,
            self._metrics,
            PROCESS_VERSION_REFRESH,
            lambda: self._process(notification),
            payload=notification,
        )

    def drain(self, max_items: Optional[int] = None) -> MetadataEventResponse:
        """Handle queued notifications until the queue is empty.

        A notification is acknowledged once handled, even when its response
        carries errors. One that raises stays unacknowledged and is reported.
        """

        result = MetadataEventResponse()
        processed = 0
        while max_items is None or processed < max_items:
            notification = self._queue.pull()
            if notification is None:
                break
            processed += 1
            try:
                result.combine(self.handle(notification))
            except Exception as exc:  # noqa: BLE001
                error = (
                    f"refresh failed for [{notification.group_id}-"
                    f"{notification.artifact_id}-{notification.version_id}], "
                    f"event id :[{notification.event_id}]: {exc}"
                )
                _LOGGER.error(error)
                result.add_error(error)
                continue
            self._queue.ack(notification)
        _LOGGER.info("Processed [%d] queued notifications", processed)
        return result

    # -- internals ----------------------------------------------------------

    def _process(
        self, notification: MetadataNotification
    ) -> MetadataEventResponse:
        response = MetadataEventResponse()
        group_id = notification.group_id
        artifact_id = notification.artifact_id
        version_id = notification.version_id
        label = f"{group_id}-{artifact_id}-{version_id}"

        project = self._projects.find_coordinates(group_id, artifact_id)
        if project is None:
            error = f"can't find project for {group_id}-{artifact_id}"
            _LOGGER.error(error)
            return response.add_error(error)

        existing = self._projects.find(group_id, artifact_id, version_id)
        if (
            existing is not None
            and not existing.evicted
            and not notification.full_update
            and not is_snapshot(version_id)
        ):
            message = f"{label} already stored, skipping"
            _LOGGER.info(message)
            return response.add_message(message)

        _LOGGER.info(
            "Processing [%s], event id :[%s]", label, notification.event_id
        )
        for artifact_type in self._registry.supported_types():
            handler = self._registry.get(artifact_type)
            if handler is None:
                continue
            try:
                files = self._repository.find_files(
                    artifact_type, group_id, artifact_id, version_id
                )
            except ArtifactRepositoryError as exc:
                error = (
                    f"Error fetching {artifact_type.value} files for "
                    f"{label}: {exc}"
                )
                _LOGGER.error(error)
                response.add_error(error)
                continue
            response.combine(handler.refresh(project, version_id, files))

        if response.has_errors:
            _LOGGER.warning("Version record for %s not updated", label)
            return response

        try:
            dependencies = tuple(
                self._repository.find_dependencies(
                    group_id, artifact_id, version_id
                )
            )
        except ArtifactRepositoryError as exc:
            error = f"Error fetching dependencies for {label}: {exc}"
            _LOGGER.error(error)
            return response.add_error(error)

        self._store_version(group_id, artifact_id, version_id, dependencies)
        response.add_message(f"{label} version record updated")

        if notification.transitive:
            response.combine(
                self._queue_dependencies(notification, dependencies)
            )
        return response

    def _store_version(
        self,
        group_id: str,
        artifact_id: str,
        version_id: str,
        dependencies: Tuple[ProjectVersion, ...],
    ) -> StoreProjectVersionData:
        def _refreshed(
            record: StoreProjectVersionData,
        ) -> StoreProjectVersionData:
            return replace(
                record,
                evicted=False,
                version_data=replace(
                    record.version_data, dependencies=dependencies
                ),
            )

        if self._projects.find(group_id, artifact_id, version_id) is None:
            return self._projects.create_or_update(
                StoreProjectVersionData(
                    group_id=group_id,
                    artifact_id=artifact_id,
                    version_id=version_id,
                    version_data=ProjectVersionData(dependencies=dependencies),
                )
            )
        return self._projects.update_version(
            group_id, artifact_id, version_id, _refreshed
        )

    def _queue_dependencies(
        self,
        notification: MetadataNotification,
        dependencies: Tuple[ProjectVersion, ...],
    ) -> MetadataEventResponse:
        response = MetadataEventResponse()
        parent_event = build_parent_event_id(
            notification.group_id,
            notification.artifact_id,
            notification.version_id,
            notification.parent_event_id,
        )
        pending: List[Tuple[StoreProjectData, ProjectVersion]] = []
        for dependency in dependencies:
            project = self._projects.find_coordinates(
                dependency.group_id, dependency.artifact_id
            )
            if project is None:
                _LOGGER.debug("Dependency %s is not a known project", dependency)
                continue
            stored = self._projects.find(
                dependency.group_id,
                dependency.artifact_id,
                dependency.version_id,
            )
            if stored is None:
                pending.append((project, dependency))

        for project, dependency in pending:
            try:
                event_id = self._queue.push(
                    MetadataNotification(
                        project.project_id,
                        dependency.group_id,
                        dependency.artifact_id,
                        dependency.version_id,
                        False,
                        True,
                        parent_event,
                    )
                )
            except Exception as exc:  # noqa: BLE001
                error = f"queuing failed for dependency {dependency}: {exc}"
                _LOGGER.error(error)
                response.add_error(error)
                continue
            response.add_message(
                f"queued dependency: [{dependency}], parentEventId "
                f":[{parent_event}],event id :[{event_id}] "
            )
        return response
