"""Domain model package exports."""

from .artifacts import ArtifactType
from .entities import (GENERATION_CONFIGURATION, Entity, FileGeneration,
                       StoredEntity, StoredFileGeneration)
from .notifications import MetadataNotification, build_parent_event_id
from .projects import (ProjectVersion, ProjectVersionData, StoreProjectData,
                       StoreProjectVersionData, VersionMismatch)
from .responses import MetadataEventResponse
from .versions import (ALL, MASTER_SNAPSHOT, MISSING, RESERVED_TOKENS,
                       VersionId, is_snapshot, is_valid_version,
                       sort_versions)

__all__ = [
    "ALL",
    "MASTER_SNAPSHOT",
    "MISSING",
    "RESERVED_TOKENS",
    "GENERATION_CONFIGURATION",
    "ArtifactType",
    "Entity",
    "FileGeneration",
    "MetadataEventResponse",
    "MetadataNotification",
    "ProjectVersion",
    "ProjectVersionData",
    "StoreProjectData",
    "StoreProjectVersionData",
    "StoredEntity",
    "StoredFileGeneration",
    "VersionId",
    "VersionMismatch",
    "build_parent_event_id",
    "is_snapshot",
    "is_valid_version",
    "sort_versions",
]
