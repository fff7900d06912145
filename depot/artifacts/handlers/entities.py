"""Handlers for plain and versioned entities."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

from depot.models import (ArtifactType, MetadataEventResponse, StoredEntity,
                          StoreProjectData, is_snapshot)
from depot.storage.base import EntitiesStore

from ..loaders import load_entities
from .base import ProjectArtifactsHandler

_LOGGER = logging.getLogger(__name__)


class EntitiesHandler(ProjectArtifactsHandler):
    """Stores the entities of a project version, one row per element path.

    The snapshot is wiped before it is rewritten; concrete versions are
    upserted row by row.
    """

    versioned = False

    def __init__(
        self,
        entities: EntitiesStore,
        *,
        artifact_type: ArtifactType = ArtifactType.ENTITIES,
    ) -> None:
        super().__init__(artifact_type)
        self._entities = entities

    def refresh(
        self,
        project: StoreProjectData,
        version_id: str,
        files: Sequence[Path],
    ) -> MetadataEventResponse:
        response = MetadataEventResponse()
        group_id, artifact_id = project.group_id, project.artifact_id
        try:
            entities = load_entities(files)
            if is_snapshot(version_id):
                message = (
                    f"removing prior {self.artifact_type.value} artifacts "
                    f"for [{group_id}-{artifact_id}-{version_id}]"
                )
                self._entities.delete(
                    group_id, artifact_id, version_id, versioned=self.versioned
                )
                response.add_message(message)
                _LOGGER.info(message)
            for entity in entities:
                self._entities.create_or_update(
                    StoredEntity(
                        group_id=group_id,
                        artifact_id=artifact_id,
                        version_id=version_id,
                        versioned=self.versioned,
                        entity=entity,
                    )
                )
            message = (
                f"processed [{len(entities)}] {self.artifact_type.value} "
                f"for [{group_id}-{artifact_id}-{version_id}]"
            )
            _LOGGER.info(message)
            response.add_message(message)
        except Exception as exc:  # noqa: BLE001
            message = (
                f"Error processing {self.artifact_type.value} update for "
                f"{group_id}-{artifact_id}-{version_id}, ERROR: [{exc}]"
            )
            _LOGGER.error(message)
            response.add_error(message)
        return response

    def delete(self, group_id: str, artifact_id: str, version_id: str) -> None:
        removed = self._entities.delete(
            group_id, artifact_id, version_id, versioned=self.versioned
        )
        _LOGGER.debug(
            "Removed %d %s rows for %s-%s-%s",
            removed,
            self.artifact_type.value,
            group_id,
            artifact_id,
            version_id,
        )


class VersionedEntitiesHandler(EntitiesHandler):
    """Same storage shape, kept apart from the plain entities."""

    versioned = True

    def __init__(self, entities: EntitiesStore) -> None:
        super().__init__(
            entities, artifact_type=ArtifactType.VERSIONED_ENTITIES
        )
