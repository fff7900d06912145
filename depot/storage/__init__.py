"""Storage layer abstractions and adapters."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from depot.config import DepotSettings

from .base import (EntitiesStore, FileGenerationsStore, ProjectsStore,
                   ProjectsVersionsStore)
from .errors import (ConcurrentUpdateError, RecordNotFound, RepositoryError,
                     StoreUnavailableError, ValidationError)
from .memory import (InMemoryEntitiesStore, InMemoryFileGenerationsStore,
                     InMemoryProjectsStore, InMemoryProjectsVersionsStore)


@dataclass
class DepotStores:
    """The document-store collections the engine reads and writes."""

    projects: ProjectsStore = field(default_factory=InMemoryProjectsStore)
    versions: ProjectsVersionsStore = field(
        default_factory=InMemoryProjectsVersionsStore
    )
    entities: EntitiesStore = field(default_factory=InMemoryEntitiesStore)
    generations: FileGenerationsStore = field(
        default_factory=InMemoryFileGenerationsStore
    )


def build_stores_from_env(
    settings: Optional[DepotSettings] = None,
) -> DepotStores:
    """Use DynamoDB tables where configured, in-memory stores otherwise."""

    settings = settings or DepotSettings.from_env()
    stores = DepotStores()
    if not any(
        (
            settings.projects_table,
            settings.versions_table,
            settings.entities_table,
            settings.generations_table,
        )
    ):
        return stores

    from .dynamodb import (DynamoDBEntitiesStore,
                           DynamoDBFileGenerationsStore,
                           DynamoDBProjectsStore,
                           DynamoDBProjectsVersionsStore,
                           default_dynamodb_resource)

    resource = default_dynamodb_resource()
    if settings.projects_table:
        stores.projects = DynamoDBProjectsStore(
            settings.projects_table, resource=resource
        )
    if settings.versions_table:
        stores.versions = DynamoDBProjectsVersionsStore(
            settings.versions_table, resource=resource
        )
    if settings.entities_table:
        stores.entities = DynamoDBEntitiesStore(
            settings.entities_table, resource=resource
        )
    if settings.generations_table:
        stores.generations = DynamoDBFileGenerationsStore(
            settings.generations_table, resource=resource
        )
    return stores


__all__ = [
    "ConcurrentUpdateError",
    "DepotStores",
    "EntitiesStore",
    "FileGenerationsStore",
    "InMemoryEntitiesStore",
    "InMemoryFileGenerationsStore",
    "InMemoryProjectsStore",
    "InMemoryProjectsVersionsStore",
    "ProjectsStore",
    "ProjectsVersionsStore",
    "RecordNotFound",
    "RepositoryError",
    "StoreUnavailableError",
    "ValidationError",
    "build_stores_from_env",
]
