from __future__ import annotations

import os
from pathlib import Path

import pytest

from depot.utils import env


def test_load_dotenv_populates_environment(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    dotenv = tmp_path / ".env"
    dotenv.write_text(
        "DEPOT_QUEUE_URL='https://sqs.local/q'\n# comment\nEMPTY=\n"
    )

    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(env, "_ENV_LOADED", False)
    monkeypatch.delenv("DEPOT_QUEUE_URL", raising=False)

    env.load_dotenv()

    assert os.environ["DEPOT_QUEUE_URL"] == "https://sqs.local/q"


def test_load_dotenv_is_idempotent(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    dotenv = tmp_path / ".env"
    dotenv.write_text("DEPOT_VERSIONS_TABLE=from-file\n")

    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr(env, "_ENV_LOADED", False)
    monkeypatch.setenv("DEPOT_VERSIONS_TABLE", "existing")

    env.load_dotenv()
    env.load_dotenv()  # Second call should be a no-op.

    assert os.environ["DEPOT_VERSIONS_TABLE"] == "existing"


def test_parse_line_helpers() -> None:
    assert env._parse_line("KEY=value") == ("KEY", "value")
    assert env._parse_line('KEY="quoted"') == ("KEY", "quoted")
    assert env._parse_line("   # comment") is None
    assert env._parse_line("   ") is None
    assert env._parse_line("INVALID") is None


def test_env_int_falls_back_on_bad_values(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("DEPOT_REFRESH_MAX_WORKERS", "abc")
    assert env.env_int("DEPOT_REFRESH_MAX_WORKERS", 8) == 8
    monkeypatch.setenv("DEPOT_REFRESH_MAX_WORKERS", "0")
    assert env.env_int("DEPOT_REFRESH_MAX_WORKERS", 8) == 8
    monkeypatch.setenv("DEPOT_REFRESH_MAX_WORKERS", "3")
    assert env.env_int("DEPOT_REFRESH_MAX_WORKERS", 8) == 3


def test_env_str_and_truthy(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DEPOT_QUEUE_URL", "   ")
    assert env.env_str("DEPOT_QUEUE_URL") is None
    assert env.truthy("Yes") is True
    assert env.truthy(None) is False
