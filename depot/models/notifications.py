"""Queue payload for refresh work and parent event id construction."""

from __future__ import annotations

import json
from dataclasses import dataclass, replace
from typing import Any, Dict, Mapping, Optional

EVENT_SEPARATOR = "-"


def build_parent_event_id(
    group_id: str,
    artifact_id: str,
    version_id: str,
    parent_event_id: Optional[str] = None,
) -> str:
    """Compose ``<parent>-<groupId>-<artifactId>-<versionId>``.

    A missing parent yields ``<groupId>-<artifactId>-<versionId>`` so the id
    never contains a ``None`` component.
    """

    parts = [group_id, artifact_id, version_id]
    if parent_event_id:
        parts.insert(0, parent_event_id)
    return EVENT_SEPARATOR.join(parts)


@dataclass(frozen=True)
class MetadataNotification:
    """One unit of refresh work. ``event_id`` is assigned by the queue."""

    project_id: str
    group_id: str
    artifact_id: str
    version_id: str
    full_update: bool = False
    transitive: bool = False
    parent_event_id: Optional[str] = None
    event_id: Optional[str] = None

    def with_event_id(self, event_id: str) -> "MetadataNotification":
        return replace(self, event_id=event_id)

    def trace_tags(self) -> Dict[str, str]:
        """Flatten the payload into string attributes for a span."""
        tags = {
            "projectId": self.project_id,
            "groupId": self.group_id,
            "artifactId": self.artifact_id,
            "versionId": self.version_id,
            "fullUpdate": str(self.full_update).lower(),
            "transitive": str(self.transitive).lower(),
        }
        if self.parent_event_id:
            tags["parentEventId"] = self.parent_event_id
        if self.event_id:
            tags["eventId"] = self.event_id
        return tags

    def to_payload(self) -> Dict[str, Any]:
        return {
            "projectId": self.project_id,
            "groupId": self.group_id,
            "artifactId": self.artifact_id,
            "versionId": self.version_id,
            "fullUpdate": self.full_update,
            "transitive": self.transitive,
            "parentEventId": self.parent_event_id,
            "eventId": self.event_id,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_payload())

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "MetadataNotification":
        missing = [
            key
            for key in ("projectId", "groupId", "artifactId", "versionId")
            if not payload.get(key)
        ]
        if missing:
            raise ValueError(
                f"Notification payload is missing {', '.join(missing)}"
            )
        return cls(
            project_id=payload["projectId"],
            group_id=payload["groupId"],
            artifact_id=payload["artifactId"],
            version_id=payload["versionId"],
            full_update=bool(payload.get("fullUpdate", False)),
            transitive=bool(payload.get("transitive", False)),
            parent_event_id=payload.get("parentEventId"),
            event_id=payload.get("eventId"),
        )

    @classmethod
    def from_json(cls, raw: str) -> "MetadataNotification":
        return cls.from_payload(json.loads(raw))
