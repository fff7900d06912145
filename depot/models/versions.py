"""
Metadata Depot Repository
Introductory remarks: This module is part of the metadata depot codebase.

Version identifiers and the reserved version tokens.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import total_ordering
from typing import Iterable, List, Optional, Tuple

ALL = "ALL"
MISSING = "MISSING"
MASTER_SNAPSHOT = "MASTER-SNAPSHOT"

RESERVED_TOKENS = frozenset({ALL, MISSING, MASTER_SNAPSHOT})

_VERSION_REGEX = re.compile(
    r"^(?P<numbers>\d+(?:\.\d+)*)(?:-(?P<qualifier>[0-9A-Za-z.\-]+))?$"
)
_GROUP_ID_REGEX = re.compile(r"^[A-Za-z0-9_\-]+(\.[A-Za-z0-9_\-]+)*$")
_ARTIFACT_ID_REGEX = re.compile(r"^[A-Za-z0-9_\-.]+$")


@total_ordering
@dataclass(frozen=True, eq=False)
class VersionId:
    """Semantic version such as ``1.2.0`` or ``2.0.0-rc1``.

    Comparison pads missing numeric components with zeros, so ``1.1`` and
    ``1.1.0`` are equal. A qualified version sorts before the plain release
    with the same numbers.
    """

    numbers: Tuple[int, ...]
    qualifier: Optional[str] = None
    text: str = field(default="", compare=False)

    @classmethod
    def parse(cls, value: str) -> "VersionId":
        if value in RESERVED_TOKENS:
            raise ValueError(f"'{value}' is a reserved version token")
        match = _VERSION_REGEX.match(value or "")
        if not match:
            raise ValueError(f"'{value}' is not a valid version")
        numbers = tuple(int(part) for part in match.group("numbers").split("."))
        return cls(
            numbers=numbers, qualifier=match.group("qualifier"), text=value
        )

    def _key(self) -> Tuple[Tuple[int, ...], int, str]:
        padded = self.numbers + (0,) * (3 - len(self.numbers))
        while len(padded) > 3 and padded[-1] == 0:
            padded = padded[:-1]
        if self.qualifier is None:
            return padded, 1, ""
        return padded, 0, self.qualifier

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, VersionId):
            return NotImplemented
        return self._key() == other._key()

    def __lt__(self, other: "VersionId") -> bool:
        if not isinstance(other, VersionId):
            return NotImplemented
        return self._key() < other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __str__(self) -> str:
        return self.to_version_id_string()

    def to_version_id_string(self) -> str:
        if self.text:
            return self.text
        base = ".".join(str(number) for number in self.numbers)
        return f"{base}-{self.qualifier}" if self.qualifier else base


def is_valid_version(value: str) -> bool:
    """Return ``True`` for concrete versions; reserved tokens are rejected."""
    try:
        VersionId.parse(value)
    except ValueError:
        return False
    return True


def is_snapshot(version_id: str) -> bool:
    return version_id == MASTER_SNAPSHOT


def sort_versions(values: Iterable[str]) -> List[str]:
    """Sort version strings ascending, dropping anything unparseable."""
    parsed = []
    for value in values:
        try:
            parsed.append(VersionId.parse(value))
        except ValueError:
            continue
    return [version.to_version_id_string() for version in sorted(parsed)]


def validate_group_id(value: str) -> str:
    if not value or not _GROUP_ID_REGEX.match(value):
        raise ValueError(f"groupId '{value}' is invalid")
    return value


def validate_artifact_id(value: str) -> str:
    if not value or not _ARTIFACT_ID_REGEX.match(value):
        raise ValueError(f"artifactId '{value}' is invalid")
    return value
