# src/home_organizer/cli/bootstrap.py

from __future__ import annotations

import logging
from pathlib import Path

from ..chores.chore_store import ChoreStore
from ..config import get_settings
from ..core.state import AppState

logger = logging.getLogger(__name__)


def local_dirs(settings) -> list[Path]:
    """Directories that must exist before the store / connectors start."""
    dirs = [Path(settings.data_dir), Path(settings.db_path).parent]
    if getattr(settings, "matrix_enabled", False) and getattr(settings, "matrix_store_path", None):
        dirs.append(Path(settings.matrix_store_path))
    return dirs


def create_initial_state(*, settings=None) -> AppState:
    """Wire settings and the SQLite store into AppState (settings default to the env)."""
    settings = settings if settings is not None else get_settings()

    for d in local_dirs(settings):
        d.mkdir(parents=True, exist_ok=True)

    store = ChoreStore(settings.db_path)
    logger.debug("AppState ready: db=%s people=%d", settings.db_path, len(store.active_people()))
    return AppState(settings=settings, store=store)
