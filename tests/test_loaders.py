"""
Metadata Depot Repository
Introductory remarks: This module is part of the metadata depot codebase.

Unit tests for entity and file-generation archive readers.
"""

from __future__ import annotations

import json
import zipfile
from pathlib import Path
from typing import Dict

import pytest

from depot.artifacts import (ArtifactLoadingError, EntityLoader,
                             FileGenerationsProvider, load_entities)
from depot.models import ArtifactType, FileGeneration


def _jar(path: Path, members: Dict[str, str]) -> Path:
    with zipfile.ZipFile(path, "w") as archive:
        for name, content in members.items():
            archive.writestr(name, content)
    return path


def _entity_json(path: str, classifier: str, **content: object) -> str:
    return json.dumps(
        {"path": path, "classifierPath": classifier, "content": content}
    )


def test_entity_loader_reads_entities_folder_only(tmp_path: Path) -> None:
    jar = _jar(
        tmp_path / "model-entities.jar",
        {
            "META-INF/MANIFEST.MF": "Manifest-Version: 1.0",
            "entities/model/A.json": _entity_json("model::A", "Class"),
            "entities/model/B.json": _entity_json("model::B", "Enum"),
            "entities/readme.txt": "not an entity",
            "other/C.json": _entity_json("model::C", "Class"),
        },
    )

    entities = EntityLoader(jar).get_all_entities()

    assert [entity.path for entity in entities] == ["model::A", "model::B"]


def test_entity_loader_reads_directories(tmp_path: Path) -> None:
    folder = tmp_path / "exploded" / "entities" / "model"
    folder.mkdir(parents=True)
    (folder / "A.json").write_text(
        _entity_json("model::A", "Class", name="A"), encoding="utf-8"
    )

    entities = EntityLoader(tmp_path / "exploded").get_all_entities()

    assert len(entities) == 1
    assert entities[0].content == {"name": "A"}


def test_entity_loader_rejects_invalid_documents(tmp_path: Path) -> None:
    jar = _jar(tmp_path / "bad.jar", {"entities/A.json": "{\"path\": 1"})

    with pytest.raises(ArtifactLoadingError):
        EntityLoader(jar).get_all_entities()


def test_entity_loader_rejects_non_archives(tmp_path: Path) -> None:
    not_a_jar = tmp_path / "plain.jar"
    not_a_jar.write_text("plain text", encoding="utf-8")

    with pytest.raises(ArtifactLoadingError):
        EntityLoader(not_a_jar).get_all_entities()


def test_load_entities_later_files_override(tmp_path: Path) -> None:
    first = _jar(
        tmp_path / "first.jar",
        {"entities/A.json": _entity_json("model::A", "Class", v=1)},
    )
    second = _jar(
        tmp_path / "second.jar",
        {"entities/A.json": _entity_json("model::A", "Class", v=2)},
    )

    entities = load_entities([first, second])

    assert [entity.content["v"] for entity in entities] == [2]


def test_provider_extracts_generated_files(tmp_path: Path) -> None:
    jar = _jar(
        tmp_path / "model-file-generation.jar",
        {
            "META-INF/MANIFEST.MF": "Manifest-Version: 1.0",
            "model/A/schema.avsc": "{}",
        },
    )
    provider = FileGenerationsProvider()

    generations = provider.extract_artifacts([jar])

    assert provider.type is ArtifactType.FILE_GENERATIONS
    assert generations == [FileGeneration("/model/A/schema.avsc", "{}")]
