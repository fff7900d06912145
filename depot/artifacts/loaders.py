"""Readers for the archives published per artifact type."""

from __future__ import annotations

import json
import logging
import zipfile
from pathlib import Path
from typing import Iterator, List, Sequence, Tuple

from depot.models import ArtifactType, Entity, FileGeneration

_LOGGER = logging.getLogger(__name__)

ENTITIES_DIRECTORY = "entities"
_IGNORED_PREFIXES = ("META-INF/",)


class ArtifactLoadingError(RuntimeError):
    """Raised when a downloaded archive cannot be read."""


def _archive_members(path: Path) -> Iterator[Tuple[str, bytes]]:
    """Yield ``(relative posix name, bytes)`` for a jar/zip or a directory."""
    if path.is_dir():
        for candidate in sorted(path.rglob("*")):
            if candidate.is_file():
                name = candidate.relative_to(path).as_posix()
                yield name, candidate.read_bytes()
        return
    if not zipfile.is_zipfile(path):
        raise ArtifactLoadingError(f"'{path}' is neither a directory nor a jar")
    try:
        with zipfile.ZipFile(path) as archive:
            for info in archive.infolist():
                if info.is_dir():
                    continue
                with archive.open(info) as handle:
                    yield info.filename, handle.read()
    except zipfile.BadZipFile as exc:
        raise ArtifactLoadingError(f"Corrupt archive '{path}': {exc}") from exc


class EntityLoader:
    """Reads ``entities/**/*.json`` documents from an entities artifact."""

    def __init__(self, path: Path) -> None:
        self._path = path

    def get_all_entities(self) -> List[Entity]:
        entities: List[Entity] = []
        prefix = ENTITIES_DIRECTORY + "/"
        for name, data in _archive_members(self._path):
            if not name.startswith(prefix) or not name.endswith(".json"):
                continue
            try:
                payload = json.loads(data.decode("utf-8"))
                entities.append(Entity.from_payload(payload))
            except (UnicodeDecodeError, ValueError) as exc:
                raise ArtifactLoadingError(
                    f"Invalid entity file '{name}' in '{self._path}': {exc}"
                ) from exc
        return entities


def load_entities(files: Sequence[Path]) -> List[Entity]:
    """Load entities from every file, later files overriding earlier paths."""
    by_path = {}
    for path in files:
        for entity in EntityLoader(path).get_all_entities():
            by_path[entity.path] = entity
    return list(by_path.values())


class FileGenerationsProvider:
    """Turns file-generation archives into ``FileGeneration`` records."""

    type = ArtifactType.FILE_GENERATIONS

    def extract_artifacts(self, files: Sequence[Path]) -> List[FileGeneration]:
        generations: List[FileGeneration] = []
        for path in files:
            for name, data in _archive_members(path):
                if name.startswith(_IGNORED_PREFIXES):
                    continue
                generations.append(
                    FileGeneration(
                        path="/" + name.lstrip("/"),
                        content=data.decode("utf-8", errors="replace"),
                    )
                )
        _LOGGER.debug(
            "Extracted %d generated files from %d archives",
            len(generations),
            len(files),
        )
        return generations
