# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from home_organizer.chores.chore_store import ChoreStore
from home_organizer.core.state import AppState


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the command layer.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="home-organizer-test",
        data_dir=tmp_path,
        db_path=tmp_path / "home-organizer.sqlite3",
        upcoming_days=30,
        timezone=None,
        matrix_enabled=False,
        matrix_rooms=[],
    )


@pytest.fixture()
def store(settings: SimpleNamespace) -> ChoreStore:
    return ChoreStore(settings.db_path)


@pytest.fixture()
def state(settings: SimpleNamespace, store: ChoreStore) -> AppState:
    """
    AppState wired with a real SQLite store in tmp_path.

    The store's correctness is part of what we want to test.
    """
    return AppState(settings=settings, store=store)
