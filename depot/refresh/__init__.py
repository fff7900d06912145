"""Refresh orchestration and the queue worker."""

from .service import (REFRESH_ALL_VERSIONS_FOR_ALL_PROJECTS,
                      REFRESH_ALL_VERSIONS_FOR_PROJECT,
                      REFRESH_MASTER_SNAPSHOT_FOR_ALL_PROJECTS,
                      REFRESH_MASTER_SNAPSHOT_FOR_PROJECT,
                      REFRESH_PROJECT_VERSION_ARTIFACTS,
                      REFRESH_PROJECTS_WITH_MISSING_VERSIONS,
                      ArtifactsRefreshService)
from .versions import calculate_candidate_versions
from .worker import PROCESS_VERSION_REFRESH, ProjectVersionRefreshHandler

__all__ = [
    "PROCESS_VERSION_REFRESH",
    "REFRESH_ALL_VERSIONS_FOR_ALL_PROJECTS",
    "REFRESH_ALL_VERSIONS_FOR_PROJECT",
    "REFRESH_MASTER_SNAPSHOT_FOR_ALL_PROJECTS",
    "REFRESH_MASTER_SNAPSHOT_FOR_PROJECT",
    "REFRESH_PROJECT_VERSION_ARTIFACTS",
    "REFRESH_PROJECTS_WITH_MISSING_VERSIONS",
    "ArtifactsRefreshService",
    "ProjectVersionRefreshHandler",
    "calculate_candidate_versions",
]
