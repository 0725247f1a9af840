# tests/test_config.py

from __future__ import annotations

from pathlib import Path

import pytest

from home_organizer.config import Settings


def test_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("DATA_DIR", "DB_PATH", "UPCOMING_DAYS", "TIMEZONE", "MATRIX_ENABLED", "MATRIX_ROOMS"):
        monkeypatch.delenv(f"HOMEORG_{name}", raising=False)

    s = Settings.from_env()
    assert s.data_dir == Path(".local/home_organizer")
    assert s.db_path == Path(".local/home_organizer/home-organizer.sqlite3")
    assert s.upcoming_days == 30
    assert s.timezone is None
    assert s.matrix_enabled is False
    assert s.matrix_rooms == []


def test_env_overrides(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("HOMEORG_DATA_DIR", str(tmp_path))
    monkeypatch.delenv("HOMEORG_DB_PATH", raising=False)
    monkeypatch.setenv("HOMEORG_UPCOMING_DAYS", "14")
    monkeypatch.setenv("HOMEORG_TIMEZONE", "Europe/Berlin")
    monkeypatch.setenv("HOMEORG_MATRIX_ENABLED", "yes")
    monkeypatch.setenv("HOMEORG_MATRIX_ROOMS", "!a:hs, !b:hs")

    s = Settings.from_env()
    assert s.db_path == tmp_path / "home-organizer.sqlite3"
    assert s.upcoming_days == 14
    assert s.timezone == "Europe/Berlin"
    assert s.matrix_enabled is True
    assert s.matrix_rooms == ["!a:hs", "!b:hs"]


def test_bad_numbers_fall_back(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("HOMEORG_UPCOMING_DAYS", "a month")
    assert Settings.from_env().upcoming_days == 30

    monkeypatch.setenv("HOMEORG_UPCOMING_DAYS", "-5")
    assert Settings.from_env().upcoming_days == 0
