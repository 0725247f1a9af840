# tests/test_main.py

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from home_organizer.cli import main as cli_main
from home_organizer.config import Settings
from home_organizer.logging_setup import ConsoleLevelFilter, setup_logging


@pytest.fixture()
def restore_root_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()
    for h in handlers:
        root.addHandler(h)
    root.setLevel(level)


def test_console_filter_levels() -> None:
    f = ConsoleLevelFilter()
    assert f.min_level_for("home_organizer.chores.chore_store") == logging.DEBUG
    assert f.min_level_for("home_organizer.chores.occurrences") == logging.INFO
    assert f.min_level_for("home_organizer.connectors.matrix_connector") == logging.WARNING
    assert f.min_level_for("nio.client") == logging.ERROR


def test_setup_logging_writes_file(tmp_path: Path, restore_root_logging) -> None:
    log_file = setup_logging(log_dir=tmp_path / "logs")
    logging.getLogger("home_organizer.test").debug("hello file")
    for h in logging.getLogger().handlers:
        h.flush()
    assert "hello file" in log_file.read_text("utf-8")


def test_settings_from_args(tmp_path: Path) -> None:
    base = Settings.from_env()
    args = cli_main.build_arg_parser().parse_args(["--db", str(tmp_path / "x.sqlite3"), "--no-console"])
    s = cli_main.settings_from_args(args, base)
    assert s.db_path == tmp_path / "x.sqlite3"
    assert s.console_enabled is False
    assert args.command == []


def test_one_shot_command(state, capsys: pytest.CaptureFixture[str]) -> None:
    assert cli_main.run_one_shot(state, ["person", "add", "Ann", "#fff"]) == 0
    assert cli_main.run_one_shot(state, ["/people"]) == 0
    assert cli_main.run_one_shot(state, ["done", "99"]) == 1
    assert cli_main.run_one_shot(state, ["nope"]) == 1

    out = capsys.readouterr().out
    assert "Added Ann (id=1)." in out
    assert "Error: task 99 not found" in out
