"""
Metadata Depot Repository
Introductory remarks: This module is part of the metadata depot codebase.

Purge orchestration: delete, evict and deprecate stored project versions.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict

from depot.artifacts import HandlerRegistry
from depot.errors import UnsupportedOperationError
from depot.models import ALL, MetadataEventResponse, StoreProjectVersionData
from depot.projects import ProjectsService
from depot.projects.service import VersionUpdate
from depot.storage.errors import RepositoryError
from depot.tracing import PrometheusMetrics, TracerService

VERSION_PURGE_COUNTER = "versionPurge"
VERSION_DELETE_COUNTER = "versionDeletion"

DELETE_VERSION = "deleteVersion"
EVICT_VERSION = "evictVersion"
DEPRECATE_VERSION = "deprecateVersion"
EVICT_OLDEST = "evict_old"

_LOGGER = logging.getLogger(__name__)


def _tags(group_id: str, artifact_id: str, version_id: str) -> Dict[str, str]:
    return {
        "groupId": group_id,
        "artifactId": artifact_id,
        "versionId": version_id,
    }


class ArtifactsPurgeService:
    """Lifecycle operations on stored versions.

    Handler deletes run first; the catalog is only touched when every
    handler succeeded, so an evicted record never points at leftover rows.
    """

    def __init__(
        self,
        projects: ProjectsService,
        registry: HandlerRegistry,
        tracer: TracerService,
        metrics: PrometheusMetrics,
    ) -> None:
        self._projects = projects
        self._registry = registry
        self._tracer = tracer
        self._metrics = metrics

    def delete(
        self, group_id: str, artifact_id: str, version_id: str
    ) -> MetadataEventResponse:
        """Remove artifacts and the version record.

        Raises :class:`depot.errors.InvalidArgumentError` when the version
        record does not exist; handler deletes have already run by then.
        """

        def _run() -> MetadataEventResponse:
            response = self._delete_artifacts(
                group_id, artifact_id, version_id
            )
            if response.has_errors:
                return response
            self._metrics.increment_count(VERSION_DELETE_COUNTER)
            return response.combine(
                self._projects.delete(group_id, artifact_id, version_id)
            )

        return self._run_traced(
            DELETE_VERSION, group_id, artifact_id, version_id, _run
        )

    def evict(
        self, group_id: str, artifact_id: str, version_id: str
    ) -> MetadataEventResponse:
        """Remove artifacts and keep the record flagged as evicted."""

        def _run() -> MetadataEventResponse:
            return self._evict(group_id, artifact_id, version_id)

        return self._run_traced(
            EVICT_VERSION, group_id, artifact_id, version_id, _run
        )

    def deprecate(
        self, group_id: str, artifact_id: str, version_id: str
    ) -> MetadataEventResponse:
        """Flag the version as deprecated; artifacts stay in place."""

        def _run() -> MetadataEventResponse:
            response = MetadataEventResponse()
            if not self._update_version(
                response,
                group_id,
                artifact_id,
                version_id,
                StoreProjectVersionData.mark_deprecated,
            ):
                return response
            message = f"{group_id}-{artifact_id}-{version_id} deprecated"
            _LOGGER.info(message)
            return response.add_message(message)

        return self._run_traced(
            DEPRECATE_VERSION, group_id, artifact_id, version_id, _run
        )

    def evict_oldest_project_versions(
        self, group_id: str, artifact_id: str, versions_to_keep: int
    ) -> MetadataEventResponse:
        """Evict ascending versions until ``versions_to_keep`` remain.

        Failures stop the loop and are reported on the response together
        with whatever was evicted before them.
        """

        self._projects.check_exists(group_id, artifact_id)

        def _run() -> MetadataEventResponse:
            response = MetadataEventResponse()
            try:
                versions = self._projects.get_versions(group_id, artifact_id)
                evicted = 0
                while len(versions) > versions_to_keep:
                    version_id = versions[0]
                    outcome = self.evict(group_id, artifact_id, version_id)
                    # evict retags the active span with its own version
                    self._tracer.add_tags(_tags(group_id, artifact_id, ALL))
                    if outcome.has_errors:
                        # already counted by evict
                        response.add_errors(outcome.errors)
                        response.add_error(
                            f" Error evicting old versions "
                            f"{group_id}-{artifact_id} "
                            f"eviction of {version_id} failed"
                        )
                        return response
                    response.add_message(
                        f"{group_id}-{artifact_id}-{version_id} evicted"
                    )
                    versions.pop(0)
                    evicted += 1
                message = f"{group_id}-{artifact_id} evicted {evicted} versions"
                _LOGGER.info(message)
                response.add_message(message)
            except Exception as exc:  # noqa: BLE001
                error = (
                    f" Error evicting old versions {group_id}-{artifact_id} "
                    f"{exc}"
                )
                _LOGGER.error(error)
                response.add_error(error)
                self._metrics.increment_error_count(VERSION_PURGE_COUNTER)
            return response

        return self._run_traced(
            EVICT_OLDEST, group_id, artifact_id, ALL, _run
        )

    def evict_least_recently_used_versions(
        self, days: int
    ) -> MetadataEventResponse:
        raise UnsupportedOperationError("not implemented yet")

    # -- internals ----------------------------------------------------------

    def _evict(
        self, group_id: str, artifact_id: str, version_id: str
    ) -> MetadataEventResponse:
        response = self._delete_artifacts(group_id, artifact_id, version_id)
        if response.has_errors:
            return response
        if not self._update_version(
            response,
            group_id,
            artifact_id,
            version_id,
            StoreProjectVersionData.mark_evicted,
        ):
            return response
        self._metrics.increment_count(VERSION_PURGE_COUNTER)
        message = f"{group_id}-{artifact_id}-{version_id} evicted"
        _LOGGER.info(message)
        return response.add_message(message)

    def _update_version(
        self,
        response: MetadataEventResponse,
        group_id: str,
        artifact_id: str,
        version_id: str,
        update: VersionUpdate,
    ) -> bool:
        """Apply ``update`` to the record, reporting store failures.

        A missing record still raises
        :class:`depot.errors.InvalidArgumentError`.
        """
        try:
            self._projects.update_version(
                group_id, artifact_id, version_id, update
            )
        except RepositoryError as exc:
            error = (
                f"Error updating version record "
                f"{group_id}-{artifact_id}-{version_id}: {exc}"
            )
            _LOGGER.error(error)
            response.add_error(error)
            self._metrics.increment_error_count(VERSION_PURGE_COUNTER)
            return False
        return True

    def _delete_artifacts(
        self, group_id: str, artifact_id: str, version_id: str
    ) -> MetadataEventResponse:
        response = MetadataEventResponse()
        for artifact_type in self._registry.supported_types():
            handler = self._registry.get(artifact_type)
            if handler is None:
                continue
            try:
                handler.delete(group_id, artifact_id, version_id)
            except Exception as exc:  # noqa: BLE001
                error = (
                    f"Error deleting {artifact_type.value} for "
                    f"{group_id}-{artifact_id}-{version_id}: {exc}"
                )
                _LOGGER.error(error)
                response.add_error(error)
                self._metrics.increment_error_count(VERSION_PURGE_COUNTER)
        return response

    def _run_traced(
        self,
        name: str,
        group_id: str,
        artifact_id: str,
        version_id: str,
        run: Callable[[], MetadataEventResponse],
    ) -> MetadataEventResponse:
        tags = _tags(group_id, artifact_id, version_id)
        self._tracer.add_tags(tags)
        return self._tracer.execute_with_trace(name, run, tags=tags)
