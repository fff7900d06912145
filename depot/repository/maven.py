"""Maven repository driver built on ``requests``."""

from __future__ import annotations

import logging
import time
import xml.etree.ElementTree as ElementTree
from pathlib import Path
from typing import Iterable, List, Optional

import requests

from depot.models import (MASTER_SNAPSHOT, ArtifactType, ProjectVersion,
                          VersionId)
from depot.models.versions import validate_artifact_id, validate_group_id

from .base import ArtifactRepository
from .errors import ArtifactRepositoryError

MAVEN_SNAPSHOT_VERSION = "master-SNAPSHOT"
_CHUNK_SIZE = 8192


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _children(
    element: ElementTree.Element, name: str
) -> Iterable[ElementTree.Element]:
    return (child for child in element if _local_name(child.tag) == name)


def _child_text(element: ElementTree.Element, name: str) -> Optional[str]:
    for child in _children(element, name):
        return (child.text or "").strip() or None
    return None


class MavenArtifactRepository(ArtifactRepository):
    """Resolve versions, jars and POMs from a Maven 2 layout repository."""

    def __init__(
        self,
        base_url: str,
        download_dir: Path,
        *,
        session: Optional[requests.Session] = None,
        timeout: int = 30,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        if not base_url:
            raise ValueError("base_url must be provided")
        self._base_url = base_url.rstrip("/")
        self._download_dir = download_dir
        self._session = session or requests.Session()
        self._timeout = timeout
        self._logger = logger or logging.getLogger(self.__class__.__name__)

    # -- public API ---------------------------------------------------------

    def find_versions(self, group_id: str, artifact_id: str) -> List[VersionId]:
        url = f"{self._project_url(group_id, artifact_id)}/maven-metadata.xml"
        response = self._get(url)
        if response.status_code == 404:
            raise ArtifactRepositoryError(
                f"No versions published for {group_id}-{artifact_id}"
            )
        root = self._parse_xml(response, url)
        versions: List[VersionId] = []
        for versioning in _children(root, "versioning"):
            for listing in _children(versioning, "versions"):
                for element in _children(listing, "version"):
                    text = (element.text or "").strip()
                    try:
                        versions.append(VersionId.parse(text))
                    except ValueError:
                        self._logger.debug("Ignoring version %s", text)
        return sorted(set(versions))

    def find_files(
        self,
        artifact_type: ArtifactType,
        group_id: str,
        artifact_id: str,
        version_id: str,
    ) -> List[Path]:
        module = artifact_type.module_name(artifact_id)
        maven_version = self._maven_version(version_id)
        file_name = self._jar_name(group_id, module, maven_version)
        url = (
            f"{self._project_url(group_id, module)}/{maven_version}/"
            f"{file_name}"
        )
        target = (
            self._download_dir
            / group_id
            / artifact_id
            / version_id
            / f"{module}.jar"
        )
        if not self._download(url, target):
            self._logger.debug(
                "No %s artifact for %s-%s-%s",
                artifact_type.value,
                group_id,
                artifact_id,
                version_id,
            )
            return []
        return [target]

    def find_dependencies(
        self, group_id: str, artifact_id: str, version_id: str
    ) -> List[ProjectVersion]:
        maven_version = self._maven_version(version_id)
        url = (
            f"{self._project_url(group_id, artifact_id)}/{maven_version}/"
            f"{artifact_id}-{maven_version}.pom"
        )
        response = self._get(url)
        if response.status_code == 404:
            return []
        root = self._parse_xml(response, url)
        dependencies: List[ProjectVersion] = []
        for block in _children(root, "dependencies"):
            for dependency in _children(block, "dependency"):
                dep_group = _child_text(dependency, "groupId")
                dep_artifact = _child_text(dependency, "artifactId")
                dep_version = _child_text(dependency, "version")
                if not (dep_group and dep_artifact and dep_version):
                    continue
                if "${" in dep_version:
                    continue
                if dep_version == MAVEN_SNAPSHOT_VERSION:
                    dep_version = MASTER_SNAPSHOT
                dependencies.append(
                    ProjectVersion(dep_group, dep_artifact, dep_version)
                )
        return dependencies

    def are_valid_coordinates(self, group_id: str, artifact_id: str) -> bool:
        try:
            validate_group_id(group_id)
            validate_artifact_id(artifact_id)
        except ValueError:
            return False
        url = f"{self._project_url(group_id, artifact_id)}/maven-metadata.xml"
        try:
            response = self._get(url, method="HEAD")
        except ArtifactRepositoryError as exc:
            self._logger.warning("Coordinate probe failed: %s", exc)
            return False
        return response.status_code == 200

    # -- helpers ------------------------------------------------------------

    def _project_url(self, group_id: str, artifact_id: str) -> str:
        return f"{self._base_url}/{group_id.replace('.', '/')}/{artifact_id}"

    @staticmethod
    def _maven_version(version_id: str) -> str:
        if version_id == MASTER_SNAPSHOT:
            return MAVEN_SNAPSHOT_VERSION
        return version_id

    def _jar_name(self, group_id: str, module: str, maven_version: str) -> str:
        """Resolve the timestamped jar name of a snapshot when published."""
        default = f"{module}-{maven_version}.jar"
        if not maven_version.endswith("-SNAPSHOT"):
            return default
        url = (
            f"{self._project_url(group_id, module)}/{maven_version}/"
            "maven-metadata.xml"
        )
        response = self._get(url)
        if response.status_code != 200:
            return default
        root = self._parse_xml(response, url)
        for versioning in _children(root, "versioning"):
            for listing in _children(versioning, "snapshotVersions"):
                for snapshot in _children(listing, "snapshotVersion"):
                    if _child_text(snapshot, "extension") != "jar":
                        continue
                    if _child_text(snapshot, "classifier"):
                        continue
                    value = _child_text(snapshot, "value")
                    if value:
                        return f"{module}-{value}.jar"
        return default

    def _get(
        self, url: str, *, method: str = "GET", stream: bool = False
    ) -> requests.Response:
        started_at = time.perf_counter()
        try:
            response = self._session.request(
                method, url, timeout=self._timeout, stream=stream
            )
        except requests.RequestException as exc:
            raise ArtifactRepositoryError(
                f"Request to '{url}' failed: {exc}"
            ) from exc
        finally:
            if self._logger.isEnabledFor(logging.DEBUG):
                elapsed_ms = (time.perf_counter() - started_at) * 1000.0
                self._logger.debug("%s %s in %.2f ms", method, url, elapsed_ms)
        if response.status_code >= 400 and response.status_code != 404:
            response.close()
            raise ArtifactRepositoryError(
                f"Request to '{url}' returned HTTP {response.status_code}"
            )
        return response

    @staticmethod
    def _parse_xml(
        response: requests.Response, url: str
    ) -> ElementTree.Element:
        try:
            return ElementTree.fromstring(response.content)
        except ElementTree.ParseError as exc:
            raise ArtifactRepositoryError(
                f"Malformed XML at '{url}': {exc}"
            ) from exc

    def _download(self, url: str, target: Path) -> bool:
        with self._get(url, stream=True) as response:
            if response.status_code == 404:
                return False
            target.parent.mkdir(parents=True, exist_ok=True)
            partial = target.with_suffix(target.suffix + ".part")
            try:
                with partial.open("wb") as handle:
                    for chunk in response.iter_content(_CHUNK_SIZE):
                        if chunk:
                            handle.write(chunk)
                partial.replace(target)
            except (OSError, requests.RequestException) as exc:
                partial.unlink(missing_ok=True)
                raise ArtifactRepositoryError(
                    f"Failed to download '{url}': {exc}"
                ) from exc
        return True
