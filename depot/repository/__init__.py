"""Upstream artifact repository access."""

from __future__ import annotations

from typing import Optional

from depot.config import DepotSettings

from .base import ArtifactRepository
from .errors import ArtifactRepositoryError
from .maven import MavenArtifactRepository
from .services import RepositoryServices


def build_repository_from_env(
    settings: Optional[DepotSettings] = None,
) -> ArtifactRepository:
    settings = settings or DepotSettings.from_env()
    return MavenArtifactRepository(
        settings.repository_url,
        settings.resolved_download_dir(),
        timeout=settings.repository_timeout,
    )


__all__ = [
    "ArtifactRepository",
    "ArtifactRepositoryError",
    "MavenArtifactRepository",
    "RepositoryServices",
    "build_repository_from_env",
]
