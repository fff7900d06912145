"""
Metadata Depot Repository
Introductory remarks: This module is part of the metadata depot codebase.

DynamoDB-backed document stores.

Version records carry a ``revision`` attribute; writes are conditional on the
revision read by the caller so concurrent refresh and purge writers cannot
clobber each other.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence

from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import ClientError

from depot.models import (Entity, FileGeneration, StoredEntity,
                          StoredFileGeneration, StoreProjectData,
                          StoreProjectVersionData)
from depot.models.projects import (version_record_from_item,
                                   version_record_to_item)

from .base import (EntitiesStore, FileGenerationsStore, ProjectsStore,
                   ProjectsVersionsStore)
from .errors import (ConcurrentUpdateError, RepositoryError,
                     StoreUnavailableError)

_LOGGER = logging.getLogger(__name__)

_TRANSIENT_CODES = {
    "ProvisionedThroughputExceededException",
    "RequestLimitExceeded",
    "Throttling",
    "ThrottlingException",
    "RequestTimeout",
    "ServiceUnavailable",
    "InternalServerError",
    "503",
}


def _error_code(exc: Exception) -> Optional[str]:
    response = getattr(exc, "response", None)
    if not isinstance(response, dict):
        return None
    error = response.get("Error")
    if not isinstance(error, dict):
        return None
    code = error.get("Code")
    return code if isinstance(code, str) else None


def _translate(exc: Exception, action: str) -> RepositoryError:
    code = _error_code(exc)
    if code in _TRANSIENT_CODES:
        return StoreUnavailableError(
            f"DynamoDB temporarily unavailable during {action}: {exc}"
        )
    return RepositoryError(f"Failed to {action}: {exc}")


def default_dynamodb_resource() -> Any:
    import boto3  # type: ignore[import-untyped]

    region = os.environ.get("AWS_REGION") or os.environ.get(
        "AWS_DEFAULT_REGION"
    )
    kwargs: Dict[str, Any] = {}
    if region:
        kwargs["region_name"] = region
    return boto3.resource("dynamodb", **kwargs)


def _paginate(
    call: Callable[..., Dict[str, Any]], **params: Any
) -> Iterator[Dict[str, Any]]:
    while True:
        response = call(**params)
        yield from response.get("Items", [])
        last_key = response.get("LastEvaluatedKey")
        if not last_key:
            return
        params["ExclusiveStartKey"] = last_key


def _project_key(group_id: str, artifact_id: str) -> str:
    return f"{group_id}:{artifact_id}"


def _version_key(group_id: str, artifact_id: str, version_id: str) -> str:
    return f"{group_id}:{artifact_id}:{version_id}"


class DynamoDBProjectsStore(ProjectsStore):
    """Project identities keyed by ``coordinates``."""

    def __init__(self, table_name: str, *, resource: Any | None = None) -> None:
        if not table_name:
            raise ValueError("table_name must be provided")
        resource = resource or default_dynamodb_resource()
        self._table = resource.Table(table_name)

    def find(
        self, group_id: str, artifact_id: str
    ) -> Optional[StoreProjectData]:
        try:
            response = self._table.get_item(
                Key={"coordinates": _project_key(group_id, artifact_id)}
            )
        except ClientError as exc:
            raise _translate(exc, "read project") from exc
        item = response.get("Item")
        return _project_from_item(item) if item else None

    def get_all(self) -> Sequence[StoreProjectData]:
        try:
            items = list(_paginate(self._table.scan))
        except ClientError as exc:
            raise _translate(exc, "scan projects") from exc
        projects = [_project_from_item(item) for item in items]
        projects.sort(key=lambda p: (p.group_id, p.artifact_id))
        return projects

    def create_or_update(self, project: StoreProjectData) -> StoreProjectData:
        item = {
            "coordinates": _project_key(project.group_id, project.artifact_id),
            "projectId": project.project_id,
            "groupId": project.group_id,
            "artifactId": project.artifact_id,
        }
        try:
            self._table.put_item(Item=item)
        except ClientError as exc:
            raise _translate(exc, "write project") from exc
        return project

    def delete(self, group_id: str, artifact_id: str) -> bool:
        try:
            response = self._table.delete_item(
                Key={"coordinates": _project_key(group_id, artifact_id)},
                ReturnValues="ALL_OLD",
            )
        except ClientError as exc:
            raise _translate(exc, "delete project") from exc
        return bool(response.get("Attributes"))


class DynamoDBProjectsVersionsStore(ProjectsVersionsStore):
    """Version records: hash key ``project``, range key ``versionId``."""

    def __init__(self, table_name: str, *, resource: Any | None = None) -> None:
        if not table_name:
            raise ValueError("table_name must be provided")
        resource = resource or default_dynamodb_resource()
        self._table = resource.Table(table_name)

    def find(
        self, group_id: str, artifact_id: str, version_id: str
    ) -> Optional[StoreProjectVersionData]:
        try:
            response = self._table.get_item(
                Key={
                    "project": _project_key(group_id, artifact_id),
                    "versionId": version_id,
                }
            )
        except ClientError as exc:
            raise _translate(exc, "read version") from exc
        item = response.get("Item")
        return version_record_from_item(item) if item else None

    def find_all(
        self, group_id: str, artifact_id: str
    ) -> Sequence[StoreProjectVersionData]:
        condition = Key("project").eq(_project_key(group_id, artifact_id))
        try:
            items = list(
                _paginate(self._table.query, KeyConditionExpression=condition)
            )
        except ClientError as exc:
            raise _translate(exc, "query versions") from exc
        return [version_record_from_item(item) for item in items]

    def create_or_update(
        self, record: StoreProjectVersionData
    ) -> StoreProjectVersionData:
        stored = replace(
            record,
            revision=record.revision + 1,
            updated=datetime.now(timezone.utc),
        )
        item = version_record_to_item(stored)
        item["project"] = _project_key(record.group_id, record.artifact_id)
        if record.revision == 0:
            condition = Attr("project").not_exists()
        else:
            condition = Attr("revision").eq(record.revision)
        try:
            self._table.put_item(Item=item, ConditionExpression=condition)
        except ClientError as exc:
            if _error_code(exc) == "ConditionalCheckFailedException":
                raise ConcurrentUpdateError(
                    f"Version record {'-'.join(record.key)} changed "
                    f"(expected revision {record.revision})"
                ) from exc
            raise _translate(exc, "write version") from exc
        return stored

    def delete(self, group_id: str, artifact_id: str, version_id: str) -> bool:
        try:
            response = self._table.delete_item(
                Key={
                    "project": _project_key(group_id, artifact_id),
                    "versionId": version_id,
                },
                ReturnValues="ALL_OLD",
            )
        except ClientError as exc:
            raise _translate(exc, "delete version") from exc
        return bool(response.get("Attributes"))

    def delete_all(self, group_id: str, artifact_id: str) -> int:
        records = self.find_all(group_id, artifact_id)
        try:
            with self._table.batch_writer() as batch:
                for record in records:
                    batch.delete_item(
                        Key={
                            "project": _project_key(group_id, artifact_id),
                            "versionId": record.version_id,
                        }
                    )
        except ClientError as exc:
            raise _translate(exc, "delete versions") from exc
        return len(records)


class DynamoDBEntitiesStore(EntitiesStore):
    """Entity rows: hash key ``version``, range key ``entityKey``."""

    def __init__(self, table_name: str, *, resource: Any | None = None) -> None:
        if not table_name:
            raise ValueError("table_name must be provided")
        resource = resource or default_dynamodb_resource()
        self._table = resource.Table(table_name)

    @staticmethod
    def _prefix(versioned: bool) -> str:
        return "versioned#" if versioned else "entity#"

    def create_or_update(self, stored: StoredEntity) -> None:
        item = {
            "version": _version_key(
                stored.group_id, stored.artifact_id, stored.version_id
            ),
            "entityKey": self._prefix(stored.versioned) + stored.entity.path,
            "groupId": stored.group_id,
            "artifactId": stored.artifact_id,
            "versionId": stored.version_id,
            "versioned": stored.versioned,
            "entity": json.dumps(stored.entity.to_payload()),
        }
        try:
            self._table.put_item(Item=item)
        except ClientError as exc:
            raise _translate(exc, "write entity") from exc

    def _query(
        self, group_id: str, artifact_id: str, version_id: str, versioned: bool
    ) -> List[Dict[str, Any]]:
        condition = Key("version").eq(
            _version_key(group_id, artifact_id, version_id)
        ) & Key("entityKey").begins_with(self._prefix(versioned))
        try:
            return list(
                _paginate(self._table.query, KeyConditionExpression=condition)
            )
        except ClientError as exc:
            raise _translate(exc, "query entities") from exc

    def find(
        self,
        group_id: str,
        artifact_id: str,
        version_id: str,
        *,
        versioned: bool = False,
    ) -> Sequence[StoredEntity]:
        return [
            StoredEntity(
                group_id=item["groupId"],
                artifact_id=item["artifactId"],
                version_id=item["versionId"],
                versioned=bool(item.get("versioned", False)),
                entity=Entity.from_payload(json.loads(item["entity"])),
            )
            for item in self._query(group_id, artifact_id, version_id, versioned)
        ]

    def delete(
        self,
        group_id: str,
        artifact_id: str,
        version_id: str,
        *,
        versioned: bool = False,
    ) -> int:
        items = self._query(group_id, artifact_id, version_id, versioned)
        try:
            with self._table.batch_writer() as batch:
                for item in items:
                    batch.delete_item(
                        Key={
                            "version": item["version"],
                            "entityKey": item["entityKey"],
                        }
                    )
        except ClientError as exc:
            raise _translate(exc, "delete entities") from exc
        return len(items)


class DynamoDBFileGenerationsStore(FileGenerationsStore):
    """Generation rows: hash key ``version``, range key ``generationKey``."""

    def __init__(self, table_name: str, *, resource: Any | None = None) -> None:
        if not table_name:
            raise ValueError("table_name must be provided")
        resource = resource or default_dynamodb_resource()
        self._table = resource.Table(table_name)

    def create_or_update(self, stored: StoredFileGeneration) -> None:
        item: Dict[str, Any] = {
            "version": _version_key(
                stored.group_id, stored.artifact_id, stored.version_id
            ),
            "generationKey": f"{stored.path}#{stored.file.path}",
            "groupId": stored.group_id,
            "artifactId": stored.artifact_id,
            "versionId": stored.version_id,
            "path": stored.path,
            "file": {"path": stored.file.path, "content": stored.file.content},
        }
        if stored.type is not None:
            item["type"] = stored.type
        try:
            self._table.put_item(Item=item)
        except ClientError as exc:
            raise _translate(exc, "write generation") from exc

    def _query(
        self, group_id: str, artifact_id: str, version_id: str
    ) -> List[Dict[str, Any]]:
        condition = Key("version").eq(
            _version_key(group_id, artifact_id, version_id)
        )
        try:
            return list(
                _paginate(self._table.query, KeyConditionExpression=condition)
            )
        except ClientError as exc:
            raise _translate(exc, "query generations") from exc

    def find(
        self, group_id: str, artifact_id: str, version_id: str
    ) -> Sequence[StoredFileGeneration]:
        return [
            StoredFileGeneration(
                group_id=item["groupId"],
                artifact_id=item["artifactId"],
                version_id=item["versionId"],
                path=item["path"],
                type=item.get("type"),
                file=FileGeneration(
                    path=item["file"]["path"],
                    content=item["file"]["content"],
                ),
            )
            for item in self._query(group_id, artifact_id, version_id)
        ]

    def delete(self, group_id: str, artifact_id: str, version_id: str) -> int:
        items = self._query(group_id, artifact_id, version_id)
        try:
            with self._table.batch_writer() as batch:
                for item in items:
                    batch.delete_item(
                        Key={
                            "version": item["version"],
                            "generationKey": item["generationKey"],
                        }
                    )
        except ClientError as exc:
            raise _translate(exc, "delete generations") from exc
        _LOGGER.debug(
            "Deleted %d generations for %s-%s-%s",
            len(items),
            group_id,
            artifact_id,
            version_id,
        )
        return len(items)


def _project_from_item(item: Dict[str, Any]) -> StoreProjectData:
    return StoreProjectData(
        project_id=item["projectId"],
        group_id=item["groupId"],
        artifact_id=item["artifactId"],
    )
