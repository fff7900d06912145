"""Choosing which upstream versions a refresh should enqueue."""

from __future__ import annotations

from typing import List, Optional, Sequence

from depot.models import VersionId


def calculate_candidate_versions(
    repository_versions: Sequence[VersionId],
    latest: Optional[VersionId],
    *,
    all_versions: bool,
) -> List[VersionId]:
    """Versions newer than ``latest``, or every version.

    Every upstream version is returned when ``all_versions`` is set or
    nothing is stored yet.
    """

    if all_versions or latest is None:
        return list(repository_versions)
    return [version for version in repository_versions if version > latest]
