from __future__ import annotations

from pathlib import Path
from typing import List, Sequence

import pytest

from depot.artifacts import HandlerRegistry, ProjectArtifactsHandler
from depot.models import (ArtifactType, MetadataEventResponse,
                          StoreProjectData)


class _RecordingHandler(ProjectArtifactsHandler):
    def __init__(self, artifact_type: ArtifactType) -> None:
        super().__init__(artifact_type)
        self.deleted: List[str] = []

    def refresh(
        self,
        project: StoreProjectData,
        version_id: str,
        files: Sequence[Path],
    ) -> MetadataEventResponse:
        return MetadataEventResponse()

    def delete(self, group_id: str, artifact_id: str, version_id: str) -> None:
        self.deleted.append(version_id)


def test_supported_types_follow_enum_order() -> None:
    registry = HandlerRegistry(
        [
            _RecordingHandler(ArtifactType.FILE_GENERATIONS),
            _RecordingHandler(ArtifactType.ENTITIES),
        ]
    )

    assert registry.supported_types() == (
        ArtifactType.ENTITIES,
        ArtifactType.FILE_GENERATIONS,
    )
    assert registry.get(ArtifactType.VERSIONED_ENTITIES) is None


def test_duplicate_registration_rejected() -> None:
    registry = HandlerRegistry([_RecordingHandler(ArtifactType.ENTITIES)])

    with pytest.raises(ValueError):
        registry.register(_RecordingHandler(ArtifactType.ENTITIES))


def test_frozen_registry_is_read_only() -> None:
    handler = _RecordingHandler(ArtifactType.ENTITIES)
    registry = HandlerRegistry([handler]).freeze()

    assert registry.frozen
    assert registry.get(ArtifactType.ENTITIES) is handler
    with pytest.raises(RuntimeError):
        registry.register(_RecordingHandler(ArtifactType.VERSIONED_ENTITIES))


def test_module_names_per_type() -> None:
    assert ArtifactType.ENTITIES.module_name("m") == "m-entities"
    assert (
        ArtifactType.VERSIONED_ENTITIES.module_name("m")
        == "m-versioned-entities"
    )
    assert (
        ArtifactType.FILE_GENERATIONS.module_name("m") == "m-file-generation"
    )
