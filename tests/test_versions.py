from __future__ import annotations

import pytest

from depot.models import (ALL, MASTER_SNAPSHOT, MISSING, VersionId,
                          is_snapshot, is_valid_version, sort_versions)
from depot.models.versions import validate_artifact_id, validate_group_id
from depot.refresh import calculate_candidate_versions


def _versions(*values: str) -> list:
    return [VersionId.parse(value) for value in values]


def test_parse_and_compare_numeric_versions() -> None:
    assert VersionId.parse("1.10.0") > VersionId.parse("1.9.3")
    assert VersionId.parse("2.0.0") > VersionId.parse("1.99.99")
    assert VersionId.parse("1.1") == VersionId.parse("1.1.0")
    assert hash(VersionId.parse("1.1")) == hash(VersionId.parse("1.1.0"))


def test_qualified_version_sorts_before_release() -> None:
    assert VersionId.parse("2.0.0-rc1") < VersionId.parse("2.0.0")
    assert VersionId.parse("2.0.0-rc1") > VersionId.parse("1.9.0")


def test_text_round_trips_through_string() -> None:
    assert str(VersionId.parse("1.0")) == "1.0"
    assert VersionId((3, 1), "beta").to_version_id_string() == "3.1-beta"


@pytest.mark.parametrize("token", [ALL, MISSING, MASTER_SNAPSHOT])
def test_reserved_tokens_are_not_versions(token: str) -> None:
    assert not is_valid_version(token)
    with pytest.raises(ValueError):
        VersionId.parse(token)


@pytest.mark.parametrize("value", ["", "abc", "1..2", "v1.0"])
def test_invalid_versions_rejected(value: str) -> None:
    assert not is_valid_version(value)


def test_is_snapshot_only_matches_reserved_token() -> None:
    assert is_snapshot(MASTER_SNAPSHOT)
    assert not is_snapshot("master-SNAPSHOT")
    assert not is_snapshot("1.0.0")


def test_sort_versions_drops_unparseable_values() -> None:
    values = ["2.0.0", MASTER_SNAPSHOT, "1.10.0", "1.2.0", "bogus"]
    assert sort_versions(values) == ["1.2.0", "1.10.0", "2.0.0"]


def test_coordinate_validation() -> None:
    assert validate_group_id("org.finos.legend") == "org.finos.legend"
    assert validate_artifact_id("my-model_1") == "my-model_1"
    with pytest.raises(ValueError):
        validate_group_id("org..finos")
    with pytest.raises(ValueError):
        validate_artifact_id("bad/artifact")


def test_candidates_newer_than_latest() -> None:
    upstream = _versions("0.9", "1.0", "1.1", "2.0")

    candidates = calculate_candidate_versions(
        upstream, VersionId.parse("1.0"), all_versions=False
    )

    assert [str(version) for version in candidates] == ["1.1", "2.0"]
    assert all(version in upstream for version in candidates)


def test_candidates_include_everything_when_requested() -> None:
    upstream = _versions("0.9", "1.0", "1.1")

    assert calculate_candidate_versions(
        upstream, VersionId.parse("1.0"), all_versions=True
    ) == upstream


def test_candidates_without_stored_latest() -> None:
    upstream = _versions("0.9", "1.0")

    assert calculate_candidate_versions(
        upstream, None, all_versions=False
    ) == upstream
