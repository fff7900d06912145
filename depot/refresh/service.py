"""
Metadata Depot Repository
Introductory remarks: This module is part of the metadata depot codebase.

Refresh orchestration: decide what to refresh and queue the work.
"""

from __future__ import annotations

import logging
from typing import Optional

from depot.concurrency import parallel_map
from depot.config import DEFAULT_REFRESH_MAX_WORKERS
from depot.errors import InvalidArgumentError
from depot.models import (ALL, MASTER_SNAPSHOT, MISSING,
                          MetadataEventResponse, MetadataNotification,
                          StoreProjectData, build_parent_event_id,
                          is_valid_version)
from depot.projects import ProjectsService
from depot.repository.errors import ArtifactRepositoryError
from depot.repository.services import RepositoryServices
from depot.tracing import PrometheusMetrics, TracerService, execute_counted
from depot.work_queue import Queue

from .versions import calculate_candidate_versions

REFRESH_ALL_VERSIONS_FOR_ALL_PROJECTS = "refreshAllVersionsForAllProjects"
REFRESH_MASTER_SNAPSHOT_FOR_ALL_PROJECTS = "refreshMasterSnapshotForAllProjects"
REFRESH_ALL_VERSIONS_FOR_PROJECT = "refreshAllVersionsForProject"
REFRESH_MASTER_SNAPSHOT_FOR_PROJECT = "refreshMasterSnapshotForProject"
REFRESH_PROJECT_VERSION_ARTIFACTS = "refreshProjectVersionArtifacts"
REFRESH_PROJECTS_WITH_MISSING_VERSIONS = "refreshProjectsWithMissingVersions"

_LOGGER = logging.getLogger(__name__)


class ArtifactsRefreshService:
    """Public refresh API.

    Every operation runs inside a span named after it and returns one
    ``MetadataEventResponse``. Only unknown coordinates raise; upstream and
    queue failures become response errors.
    """

    def __init__(
        self,
        projects: ProjectsService,
        repository: RepositoryServices,
        queue: Queue,
        tracer: TracerService,
        metrics: PrometheusMetrics,
        *,
        max_workers: int = DEFAULT_REFRESH_MAX_WORKERS,
    ) -> None:
        self._projects = projects
        self._repository = repository
        self._queue = queue
        self._tracer = tracer
        self._metrics = metrics
        self._max_workers = max(1, max_workers)

    def refresh_all_versions_for_all_projects(
        self,
        full_update: bool,
        all_versions: bool,
        transitive: bool,
        parent_event_id: Optional[str] = None,
    ) -> MetadataEventResponse:
        parent_event = build_parent_event_id(ALL, ALL, ALL, parent_event_id)
        notification = MetadataNotification(
            ALL, ALL, ALL, ALL, full_update, transitive, parent_event
        )

        def _run() -> MetadataEventResponse:
            result = MetadataEventResponse()
            message = (
                f"Executing: [{ALL}-{ALL}-{ALL}], parentEventId "
                f":[{parent_event}], "
                f"full/allVersions/transitive :[{full_update}/{all_versions}/"
                f"{transitive}]"
            )
            result.add_message(message)
            _LOGGER.info(message)

            def _refresh_project(
                project: StoreProjectData,
            ) -> MetadataEventResponse:
                try:
                    return self.refresh_all_versions_for_project(
                        project.group_id,
                        project.artifact_id,
                        full_update,
                        all_versions,
                        transitive,
                        parent_event,
                    )
                except Exception as exc:  # noqa: BLE001
                    error = (
                        f"refresh failed for [{project.group_id}-"
                        f"{project.artifact_id}]: {exc}"
                    )
                    _LOGGER.error(error)
                    self._metrics.increment_error_count(
                        REFRESH_ALL_VERSIONS_FOR_ALL_PROJECTS
                    )
                    return MetadataEventResponse().add_error(error)

            for response in parallel_map(
                self._projects.get_all_project_coordinates(),
                _refresh_project,
                max_workers=self._max_workers,
                thread_name_prefix="depot-refresh",
            ):
                result.combine(response)
            return result

        return self._execute(
            REFRESH_ALL_VERSIONS_FOR_ALL_PROJECTS, notification, _run
        )

    def refresh_master_snapshot_for_all_projects(
        self,
        full_update: bool,
        transitive: bool,
        parent_event_id: Optional[str] = None,
    ) -> MetadataEventResponse:
        parent_event = build_parent_event_id(
            ALL, ALL, MASTER_SNAPSHOT, parent_event_id
        )
        notification = MetadataNotification(
            ALL, ALL, ALL, MASTER_SNAPSHOT, full_update, transitive, parent_event
        )

        def _run() -> MetadataEventResponse:
            result = MetadataEventResponse()
            message = (
                f"Executing: [{ALL}-{ALL}-{MASTER_SNAPSHOT}], parentEventId "
                f":[{parent_event}], full/transitive :[{full_update}/"
                f"{transitive}]"
            )
            result.add_message(message)
            _LOGGER.info(message)

            def _queue_snapshot(
                project: StoreProjectData,
            ) -> MetadataEventResponse:
                response = MetadataEventResponse()
                self._try_queue_work(
                    REFRESH_MASTER_SNAPSHOT_FOR_ALL_PROJECTS,
                    response,
                    project,
                    MASTER_SNAPSHOT,
                    full_update,
                    transitive,
                    parent_event,
                )
                return response

            for response in parallel_map(
                self._projects.get_all_project_coordinates(),
                _queue_snapshot,
                max_workers=self._max_workers,
                thread_name_prefix="depot-refresh",
            ):
                result.combine(response)
            return result

        return self._execute(
            REFRESH_MASTER_SNAPSHOT_FOR_ALL_PROJECTS, notification, _run
        )

    def refresh_all_versions_for_project(
        self,
        group_id: str,
        artifact_id: str,
        full_update: bool,
        all_versions: bool,
        transitive: bool,
        parent_event_id: Optional[str] = None,
    ) -> MetadataEventResponse:
        parent_event = build_parent_event_id(
            group_id, artifact_id, ALL, parent_event_id
        )
        project = self._get_project(group_id, artifact_id)
        notification = MetadataNotification(
            project.project_id,
            group_id,
            artifact_id,
            ALL,
            full_update,
            transitive,
            parent_event,
        )

        def _run() -> MetadataEventResponse:
            result = MetadataEventResponse()
            message = (
                f"Executing: [{group_id}-{artifact_id}-{ALL}], parentEventId "
                f":[{parent_event}], full/allVersions/transitive :"
                f"[{full_update}/{all_versions}/{transitive}]"
            )
            result.add_message(message)
            _LOGGER.info(message)
            # The snapshot goes first so workers see it before any version.
            self._try_queue_work(
                REFRESH_ALL_VERSIONS_FOR_PROJECT,
                result,
                project,
                MASTER_SNAPSHOT,
                full_update,
                transitive,
                parent_event,
            )
            result.combine(
                self._refresh_versions(
                    project, all_versions, transitive, parent_event
                )
            )
            return result

        return self._execute(
            REFRESH_ALL_VERSIONS_FOR_PROJECT, notification, _run
        )

    def refresh_master_snapshot_for_project(
        self,
        group_id: str,
        artifact_id: str,
        full_update: bool,
        transitive: bool,
        parent_event_id: Optional[str] = None,
    ) -> MetadataEventResponse:
        parent_event = build_parent_event_id(
            group_id, artifact_id, MASTER_SNAPSHOT, parent_event_id
        )
        project = self._get_project(group_id, artifact_id)
        notification = MetadataNotification(
            project.project_id,
            group_id,
            artifact_id,
            MASTER_SNAPSHOT,
            full_update,
            transitive,
            parent_event,
        )

        def _run() -> MetadataEventResponse:
            result = MetadataEventResponse()
            message = (
                f"Executing: [{group_id}-{artifact_id}-{MASTER_SNAPSHOT}], "
                f"parentEventId :[{parent_event}], full/transitive :"
                f"[{full_update}/{transitive}]"
            )
            result.add_message(message)
            _LOGGER.info(message)
            self._try_queue_work(
                REFRESH_MASTER_SNAPSHOT_FOR_PROJECT,
                result,
                project,
                MASTER_SNAPSHOT,
                full_update,
                transitive,
                parent_event,
            )
            return result

        return self._execute(
            REFRESH_MASTER_SNAPSHOT_FOR_PROJECT, notification, _run
        )

    def refresh_version_for_project(
        self,
        group_id: str,
        artifact_id: str,
        version_id: str,
        transitive: bool,
        parent_event_id: Optional[str] = None,
    ) -> MetadataEventResponse:
        if version_id != MASTER_SNAPSHOT and not is_valid_version(version_id):
            raise InvalidArgumentError(
                f"'{version_id}' is not a valid version for "
                f"{group_id}-{artifact_id}"
            )
        parent_event = build_parent_event_id(
            group_id, artifact_id, version_id, parent_event_id
        )
        project = self._get_project(group_id, artifact_id)
        notification = MetadataNotification(
            project.project_id,
            group_id,
            artifact_id,
            version_id,
            True,
            transitive,
            parent_event,
        )

        def _run() -> MetadataEventResponse:
            result = MetadataEventResponse()
            message = (
                f"Executing: [{group_id}-{artifact_id}-{version_id}], "
                f"parentEventId :[{parent_event}], full/transitive :"
                f"[{True}/{transitive}]"
            )
            result.add_message(message)
            _LOGGER.info(message)
            self._try_queue_work(
                REFRESH_PROJECT_VERSION_ARTIFACTS,
                result,
                project,
                version_id,
                True,
                transitive,
                parent_event,
            )
            return result

        return self._execute(
            REFRESH_PROJECT_VERSION_ARTIFACTS, notification, _run
        )

    def refresh_projects_with_missing_versions(
        self, parent_event_id: Optional[str] = None
    ) -> MetadataEventResponse:
        parent_event = build_parent_event_id(ALL, ALL, MISSING, parent_event_id)
        notification = MetadataNotification(
            ALL, ALL, ALL, MISSING, True, False, parent_event
        )

        def _run() -> MetadataEventResponse:
            response = MetadataEventResponse()
            info = (
                f"Executing: [{ALL}-{ALL}-{MISSING}], parentEventId "
                f":[{parent_event_id}], full/transitive :[{True}/{False}]"
            )
            response.add_message(info)
            _LOGGER.info(info)
            try:
                mismatches = [
                    mismatch
                    for mismatch in self._repository.find_versions_mismatches()
                    if mismatch.versions_not_in_store
                ]
            except Exception as exc:  # noqa: BLE001
                error = f"Unable to compute version mismatches: {exc}"
                _LOGGER.error(error)
                self._metrics.increment_error_count(
                    REFRESH_PROJECTS_WITH_MISSING_VERSIONS
                )
                return response.add_error(error)

            count_info = (
                f"Starting fixing [{len(mismatches)}] projects with missing "
                "versions"
            )
            _LOGGER.info(count_info)
            response.add_message(count_info)
            total = 0
            for mismatch in mismatches:
                for missing_version in mismatch.versions_not_in_store:
                    coordinates = (
                        f"{mismatch.group_id}-{mismatch.artifact_id}-"
                        f"{missing_version}"
                    )
                    try:
                        _LOGGER.info(
                            "queued fixing missing version: %s", coordinates
                        )
                        project = self._get_project(
                            mismatch.group_id, mismatch.artifact_id
                        )
                        response.add_message(
                            self._queue_work(
                                project,
                                missing_version,
                                True,
                                False,
                                parent_event_id,
                            )
                        )
                    except Exception as exc:  # noqa: BLE001
                        error = (
                            "queuing failed for missing version: "
                            f"{coordinates} ({exc})"
                        )
                        _LOGGER.error(error)
                        response.add_error(error)
                        self._metrics.increment_error_count(
                            REFRESH_PROJECTS_WITH_MISSING_VERSIONS
                        )
                    total += 1
            _LOGGER.info("Fixed [%d] missing versions", total)
            return response

        return self._execute(
            REFRESH_PROJECTS_WITH_MISSING_VERSIONS, notification, _run
        )

    # -- internals ----------------------------------------------------------

    def _refresh_versions(
        self,
        project: StoreProjectData,
        all_versions: bool,
        transitive: bool,
        parent_event: str,
    ) -> MetadataEventResponse:
        response = MetadataEventResponse()
        group_id, artifact_id = project.group_id, project.artifact_id
        label = f"{project.project_id}: [{group_id}-{artifact_id}]"
        if not self._repository.are_valid_coordinates(group_id, artifact_id):
            error = f"invalid coordinates : [{group_id}-{artifact_id}]"
            _LOGGER.error(error)
            self._metrics.increment_error_count(
                REFRESH_ALL_VERSIONS_FOR_PROJECT
            )
            return response.add_error(error)

        _LOGGER.info("Fetching %s versions from repository", label)
        try:
            repository_versions = self._repository.find_versions(
                group_id, artifact_id
            )
        except ArtifactRepositoryError as exc:
            self._metrics.increment_error_count(
                REFRESH_ALL_VERSIONS_FOR_PROJECT
            )
            return response.add_error(str(exc))

        if not repository_versions:
            return response
        latest = self._projects.get_latest_version(group_id, artifact_id)
        candidates = calculate_candidate_versions(
            repository_versions, latest, all_versions=all_versions
        )
        info = (
            f"{label} found [{len(candidates)}] versions to update: "
            f"{[str(version) for version in candidates]}"
        )
        _LOGGER.info(info)
        response.add_message(info)
        for version in candidates:
            self._try_queue_work(
                REFRESH_ALL_VERSIONS_FOR_PROJECT,
                response,
                project,
                version.to_version_id_string(),
                True,
                transitive,
                parent_event,
            )
        _LOGGER.info(
            "Finished processing all versions %s-%s", group_id, artifact_id
        )
        return response

    def _queue_work(
        self,
        project: StoreProjectData,
        version_id: str,
        full_update: bool,
        transitive: bool,
        parent_event: Optional[str],
    ) -> str:
        event_id = self._queue.push(
            MetadataNotification(
                project.project_id,
                project.group_id,
                project.artifact_id,
                version_id,
                full_update,
                transitive,
                parent_event,
            )
        )
        return (
            f"queued: [{project.group_id}-{project.artifact_id}-{version_id}], "
            f"parentEventId :[{parent_event}], full/transitive :"
            f"[{full_update}/{transitive}],event id :[{event_id}] "
        )

    def _try_queue_work(
        self,
        name: str,
        response: MetadataEventResponse,
        project: StoreProjectData,
        version_id: str,
        full_update: bool,
        transitive: bool,
        parent_event: Optional[str],
    ) -> None:
        try:
            response.add_message(
                self._queue_work(
                    project, version_id, full_update, transitive, parent_event
                )
            )
        except Exception as exc:  # noqa: BLE001
            error = (
                f"queuing failed for [{project.group_id}-"
                f"{project.artifact_id}-{version_id}]: {exc}"
            )
            _LOGGER.error(error)
            response.add_error(error)
            self._metrics.increment_error_count(name)

    def _get_project(self, group_id: str, artifact_id: str) -> StoreProjectData:
        project = self._projects.find_coordinates(group_id, artifact_id)
        if project is None:
            raise InvalidArgumentError(
                f"can't find project for {group_id}-{artifact_id}"
            )
        return project

    def _execute(
        self,
        name: str,
        notification: MetadataNotification,
        run,
    ) -> MetadataEventResponse:
        return execute_counted(
            self._tracer, self._metrics, name, run, payload=notification
        )
