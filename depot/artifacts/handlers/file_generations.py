"""
Metadata Depot Repository
Introductory remarks: This module is part of the metadata depot codebase.

Handler attributing generated files to the model elements behind them.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Set

from depot.models import (GENERATION_CONFIGURATION, ArtifactType, Entity,
                          FileGeneration, MetadataEventResponse,
                          StoredFileGeneration, StoreProjectData, is_snapshot)
from depot.models.entities import PACKAGE_SEPARATOR
from depot.repository.services import RepositoryServices
from depot.storage.base import FileGenerationsStore

from ..loaders import FileGenerationsProvider, load_entities
from .base import ProjectArtifactsHandler

TYPE = "type"
PATH = "/"
GENERATION_OUTPUT_PATH = "generationOutputPath"
UNDERSCORE = "_"

_LOGGER = logging.getLogger(__name__)


class FileGenerationHandler(ProjectArtifactsHandler):
    """Stores generated files keyed by the element that produced them."""

    def __init__(
        self,
        repository: RepositoryServices,
        provider: FileGenerationsProvider,
        generations: FileGenerationsStore,
    ) -> None:
        super().__init__(ArtifactType.FILE_GENERATIONS)
        self._repository = repository
        self._provider = provider
        self._generations = generations

    def refresh(
        self,
        project: StoreProjectData,
        version_id: str,
        files: Sequence[Path],
    ) -> MetadataEventResponse:
        response = MetadataEventResponse()
        group_id, artifact_id = project.group_id, project.artifact_id
        try:
            project_entities = self._non_versioned_entities(
                group_id, artifact_id, version_id
            )
            configurations = [
                entity
                for entity in project_entities
                if entity.classifier_path.lower()
                == GENERATION_CONFIGURATION.lower()
            ]
            generated_files = self._provider.extract_artifacts(files)
            if is_snapshot(version_id):
                message = (
                    f"removing prior {self._provider.type.value} artifacts "
                    f"for [{group_id}-{artifact_id}-{version_id}]"
                )
                response.add_message(message)
                self._generations.delete(group_id, artifact_id, version_id)
                _LOGGER.info(message)

            processed: Set[str] = set()
            for entity in configurations:
                element_path = PATH + self._output_path(entity)
                generation_type = entity.content.get(TYPE)
                for generated in generated_files:
                    if not generated.path.startswith(element_path):
                        continue
                    self._store(
                        project,
                        version_id,
                        entity.path,
                        generation_type,
                        FileGeneration(
                            path=generated.path[len(element_path):],
                            content=generated.content,
                        ),
                    )
                    processed.add(generated.path)

            element_paths = self._entities_by_element_path(project_entities)
            derived = 0
            for generated in generated_files:
                if generated.path in processed:
                    continue
                owner = self._owning_entity(generated.path, element_paths)
                if owner is None:
                    _LOGGER.warning(
                        "Can't find element path for generated file with "
                        "path %s",
                        generated.path,
                    )
                    continue
                self._store(project, version_id, owner.path, None, generated)
                derived += 1

            message = (
                f"processed [{len(processed) + derived}] generations for "
                f"[{group_id}-{artifact_id}-{version_id}]"
            )
            _LOGGER.info(message)
            response.add_message(message)
        except Exception as exc:  # noqa: BLE001
            message = (
                "Error processing generations update for "
                f"{group_id}-{artifact_id}-{version_id}, ERROR: [{exc}]"
            )
            _LOGGER.error(message)
            response.add_error(message)
        return response

    def delete(self, group_id: str, artifact_id: str, version_id: str) -> None:
        self._generations.delete(group_id, artifact_id, version_id)

    def _non_versioned_entities(
        self, group_id: str, artifact_id: str, version_id: str
    ) -> List[Entity]:
        files = self._repository.find_files(
            ArtifactType.ENTITIES, group_id, artifact_id, version_id
        )
        return load_entities(files[:1])

    @staticmethod
    def _output_path(entity: Entity) -> str:
        output_path = entity.content.get(GENERATION_OUTPUT_PATH)
        if output_path:
            return str(output_path)
        return entity.path.replace(PACKAGE_SEPARATOR, UNDERSCORE)

    @staticmethod
    def _entities_by_element_path(
        entities: Sequence[Entity],
    ) -> Dict[str, Entity]:
        return {
            PATH + entity.path.replace(PACKAGE_SEPARATOR, PATH): entity
            for entity in entities
        }

    @staticmethod
    def _owning_entity(
        file_path: str, element_paths: Dict[str, Entity]
    ) -> Optional[Entity]:
        """Longest element path that prefixes ``file_path``."""
        best: Optional[str] = None
        for candidate in element_paths:
            if file_path.startswith(candidate) and (
                best is None or len(candidate) > len(best)
            ):
                best = candidate
        return element_paths[best] if best is not None else None

    def _store(
        self,
        project: StoreProjectData,
        version_id: str,
        element_path: str,
        generation_type: Optional[str],
        generation: FileGeneration,
    ) -> None:
        self._generations.create_or_update(
            StoredFileGeneration(
                group_id=project.group_id,
                artifact_id=project.artifact_id,
                version_id=version_id,
                path=element_path,
                type=generation_type,
                file=generation,
            )
        )
