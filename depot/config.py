"""
Metadata Depot Repository
Introductory remarks: This module is part of the metadata depot codebase.

Central configuration for the depot engine.
"""

from __future__ import annotations

import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from depot.utils.env import env_int, env_str, load_dotenv

DEFAULT_REPOSITORY_URL = "https://repo1.maven.org/maven2"
"""Upstream Maven repository used when none is configured."""

DEFAULT_REFRESH_MAX_WORKERS = 8
"""Bound on the thread pool used by the all-projects refresh fan-out."""

DEFAULT_REPOSITORY_TIMEOUT = 30
"""Seconds before an upstream HTTP request is abandoned."""


@dataclass(frozen=True)
class DepotSettings:
    """Runtime settings assembled from the environment."""

    refresh_max_workers: int = DEFAULT_REFRESH_MAX_WORKERS
    repository_url: str = DEFAULT_REPOSITORY_URL
    repository_timeout: int = DEFAULT_REPOSITORY_TIMEOUT
    download_dir: Optional[Path] = None
    projects_table: Optional[str] = None
    versions_table: Optional[str] = None
    entities_table: Optional[str] = None
    generations_table: Optional[str] = None
    queue_url: Optional[str] = None

    @classmethod
    def from_env(cls) -> "DepotSettings":
        load_dotenv()
        download_dir = env_str("DEPOT_DOWNLOAD_DIR")
        return cls(
            refresh_max_workers=env_int(
                "DEPOT_REFRESH_MAX_WORKERS", DEFAULT_REFRESH_MAX_WORKERS
            ),
            repository_url=(
                env_str("DEPOT_REPOSITORY_URL") or DEFAULT_REPOSITORY_URL
            ).rstrip("/"),
            repository_timeout=env_int(
                "DEPOT_REPOSITORY_TIMEOUT", DEFAULT_REPOSITORY_TIMEOUT
            ),
            download_dir=Path(download_dir) if download_dir else None,
            projects_table=env_str("DEPOT_PROJECTS_TABLE"),
            versions_table=env_str("DEPOT_VERSIONS_TABLE"),
            entities_table=env_str("DEPOT_ENTITIES_TABLE"),
            generations_table=env_str("DEPOT_GENERATIONS_TABLE"),
            queue_url=env_str("DEPOT_QUEUE_URL"),
        )

    def resolved_download_dir(self) -> Path:
        if self.download_dir is not None:
            return self.download_dir
        return Path(tempfile.gettempdir()) / "depot-downloads"
