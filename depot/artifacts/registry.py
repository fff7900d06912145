"""Lookup table from artifact type to its handler."""

from __future__ import annotations

import threading
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Optional, Tuple

from depot.models import ArtifactType

from .handlers.base import ProjectArtifactsHandler


class HandlerRegistry:
    """Handlers keyed by artifact type.

    Registration happens while the process wires itself up; ``freeze`` then
    makes the table read-only so lookups need no locking.
    """

    def __init__(
        self, handlers: Optional[Iterable[ProjectArtifactsHandler]] = None
    ) -> None:
        self._lock = threading.Lock()
        self._handlers: Dict[ArtifactType, ProjectArtifactsHandler] = {}
        self._view: Optional[Mapping[ArtifactType, ProjectArtifactsHandler]]
        self._view = None
        for handler in handlers or ():
            self.register(handler)

    @property
    def frozen(self) -> bool:
        return self._view is not None

    def register(self, handler: ProjectArtifactsHandler) -> None:
        with self._lock:
            if self._view is not None:
                raise RuntimeError("Handler registry is frozen")
            if handler.artifact_type in self._handlers:
                raise ValueError(
                    f"Handler for {handler.artifact_type.value} "
                    "already registered"
                )
            self._handlers[handler.artifact_type] = handler

    def freeze(self) -> "HandlerRegistry":
        with self._lock:
            if self._view is None:
                self._view = MappingProxyType(dict(self._handlers))
        return self

    def get(
        self, artifact_type: ArtifactType
    ) -> Optional[ProjectArtifactsHandler]:
        return self._table().get(artifact_type)

    def supported_types(self) -> Tuple[ArtifactType, ...]:
        """Registered types in declaration order of ``ArtifactType``."""
        table = self._table()
        return tuple(t for t in ArtifactType if t in table)

    def _table(self) -> Mapping[ArtifactType, ProjectArtifactsHandler]:
        if self._view is not None:
            return self._view
        with self._lock:
            return dict(self._handlers)
