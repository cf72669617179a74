"""Tests for the command line entry point."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest

from cronpost.__main__ import EXIT_NOT_FOUND, EXIT_OK, EXIT_USAGE, main
from cronpost.posting import LogPoster


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    path = tmp_path / "config.json"
    path.write_text(
        json.dumps({"store_path": str(tmp_path / "schedules.json"), "namespace": "cli"}),
        encoding="utf-8",
    )
    return path


def _cli(config_path: Path, *args: str) -> int:
    return main(["--config", str(config_path), *args])


def _stored(config_path: Path) -> dict:
    data = json.loads((config_path.parent / "schedules.json").read_text(encoding="utf-8"))
    return data["cli"]


def test_add_list_remove(config_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert _cli(config_path, "add", "alice", "0 9 * * 1", "weekly", "standup") == EXIT_OK
    assert "Added schedule 1" in capsys.readouterr().out
    assert _stored(config_path)["alice"]["1"]["command"] == "weekly standup"

    assert _cli(config_path, "list", "alice") == EXIT_OK
    out = capsys.readouterr().out
    assert "0 9 * * 1" in out
    assert "weekly standup" in out

    assert _cli(config_path, "remove", "alice", "1") == EXIT_OK
    assert _cli(config_path, "remove", "alice", "1") == EXIT_NOT_FOUND
    assert _stored(config_path)["alice"] == {}


def test_add_rejects_short_schedule(config_path: Path) -> None:
    assert _cli(config_path, "add", "alice", "0 9", "hello") == EXIT_USAGE
    assert not (config_path.parent / "schedules.json").exists()


def test_list_empty(config_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert _cli(config_path, "list", "nobody") == EXIT_OK
    assert "No schedules" in capsys.readouterr().out


def test_run_posts_matching(config_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    _cli(config_path, "add", "alice", "30 9 * * *", "coffee")
    _cli(config_path, "add", "alice", "0 12 * * *", "lunch")
    capsys.readouterr()

    poster = LogPoster()
    with patch("cronpost.__main__.build_poster", return_value=poster):
        assert _cli(config_path, "run", "alice", "--at", "2026-01-15T09:30:27") == EXIT_OK

    assert poster.sent == [("alice", "coffee")]
    assert "1 of 2 schedule(s) matched at 2026-01-15 09:30" in capsys.readouterr().out


def test_bad_config_exits_with_usage(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text("{", encoding="utf-8")
    assert main(["--config", str(path), "list", "alice"]) == EXIT_USAGE


def test_serve_without_accounts(config_path: Path) -> None:
    assert _cli(config_path, "serve") == EXIT_USAGE


def test_add_text_splits_schedule_and_command(
    config_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    text = "cron add - 0 7 * * 0 sunday  brunch"
    assert _cli(config_path, "add-text", "alice", text) == EXIT_OK
    assert "Added schedule 1" in capsys.readouterr().out

    record = _stored(config_path)["alice"]["1"]
    assert record["command"] == "sunday  brunch"
    assert json.loads(record["schedule"]) == {
        "min": "0",
        "hour": "7",
        "day": "*",
        "mon": "*",
        "week": "0",
    }


def test_add_text_requires_command(config_path: Path) -> None:
    assert _cli(config_path, "add-text", "alice", "cron add - 0 7 * * 0") == EXIT_USAGE
    assert _cli(config_path, "add-text", "alice", "cron add - 0 7") == EXIT_USAGE
    assert not (config_path.parent / "schedules.json").exists()
