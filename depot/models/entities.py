"""Entities and file generations extracted from published artifacts."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

GENERATION_CONFIGURATION = (
    "meta::pure::generation::metamodel::GenerationConfiguration"
)
PACKAGE_SEPARATOR = "::"


@dataclass(frozen=True)
class Entity:
    """A model element as serialized in an entities artifact."""

    path: str
    classifier_path: str
    content: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "Entity":
        path = payload.get("path")
        classifier_path = payload.get("classifierPath")
        if not path or not classifier_path:
            raise ValueError("Entity payload requires path and classifierPath")
        return cls(
            path=path,
            classifier_path=classifier_path,
            content=dict(payload.get("content") or {}),
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "classifierPath": self.classifier_path,
            "content": dict(self.content),
        }


@dataclass(frozen=True)
class StoredEntity:
    """Entity row keyed by its owning triple and element path."""

    group_id: str
    artifact_id: str
    version_id: str
    versioned: bool
    entity: Entity


@dataclass(frozen=True)
class FileGeneration:
    """A generated file: absolute archive path plus text content."""

    path: str
    content: str


@dataclass(frozen=True)
class StoredFileGeneration:
    """Generated file row attributed to the element that produced it."""

    group_id: str
    artifact_id: str
    version_id: str
    path: str
    type: Optional[str]
    file: FileGeneration
