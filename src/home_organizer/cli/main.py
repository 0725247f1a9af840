# src/home_organizer/cli/main.py

"""
CLI entrypoint.

    home-organizer                    interactive console (+ Matrix if enabled)
    home-organizer month 2024-02      run one command and exit
    home-organizer --db other.sqlite3 --no-console
"""

from __future__ import annotations

import argparse
import dataclasses
import logging
import signal
import sys
import threading
from pathlib import Path
from typing import TYPE_CHECKING

from ..cli.bootstrap import create_initial_state
from ..cli.commands import registry
from ..config import Settings, get_settings
from ..connectors.console_connector import run_console_loop
from ..core.state import AppState
from ..logging_setup import setup_logging

if TYPE_CHECKING:
    from ..connectors.matrix_connector import MatrixBackgroundRunner

logger = logging.getLogger(__name__)


def build_arg_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="home-organizer",
        description="Household chore calendar. Without a command, starts the interactive console.",
    )
    ap.add_argument("--db", metavar="PATH", help="SQLite database (overrides HOMEORG_DB_PATH).")
    ap.add_argument("--log-level", metavar="LEVEL", help="Console log level (overrides HOMEORG_LOG_LEVEL).")
    ap.add_argument("--no-console", action="store_true", help="Do not start the REPL (Matrix only).")
    ap.add_argument(
        "command",
        nargs=argparse.REMAINDER,
        help="One command to run and exit, e.g. `upcoming 7` or `done 3 2024-01-10`.",
    )
    return ap


def settings_from_args(args: argparse.Namespace, base: Settings) -> Settings:
    changes: dict[str, object] = {}
    if args.db:
        changes["db_path"] = Path(args.db).expanduser()
    if args.log_level:
        changes["log_level"] = args.log_level
    if args.no_console:
        changes["console_enabled"] = False
    return dataclasses.replace(base, **changes) if changes else base


def run_one_shot(state: AppState, words: list[str]) -> int:
    line = " ".join(words).strip()
    if not line.startswith("/"):
        line = "/" + line
    with state.lock:
        reply = registry.handle(state, line)
    print(reply or "")
    return 1 if reply is None or reply.startswith(("Error:", "Unknown command")) else 0


def _serve(state: AppState) -> None:
    settings = state.settings
    matrix_runner: MatrixBackgroundRunner | None = None
    if settings.matrix_enabled:
        # nio is only imported when the connector is actually used.
        from ..connectors.matrix_connector import start_matrix_in_background

        matrix_runner = start_matrix_in_background(state)

    stopped = threading.Event()

    def _on_signal(signum, _frame) -> None:
        logger.info("Signal %s received, shutting down.", signum)
        stopped.set()

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            signal.signal(sig, _on_signal)
        except (ValueError, OSError):
            logger.debug("Cannot install handler for signal %s", sig)

    try:
        if settings.console_enabled:
            run_console_loop(state)
        elif matrix_runner is None:
            logger.warning("Neither console nor Matrix is enabled; nothing to do.")
        else:
            logger.info("Console disabled, serving Matrix only. Ctrl+C to stop.")
            stopped.wait()
    finally:
        if matrix_runner is not None:
            matrix_runner.stop()
            matrix_runner.join(timeout=10.0)


def main(argv: list[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)
    settings = settings_from_args(args, get_settings())

    console_level = getattr(logging, str(settings.log_level).upper(), logging.INFO)
    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    state = create_initial_state(settings=settings)
    try:
        if args.command:
            return run_one_shot(state, args.command)
        logger.info("Starting %s (db=%s)", settings.app_name, settings.db_path)
        _serve(state)
        return 0
    finally:
        state.store.close()
        logger.info("Bye.")


if __name__ == "__main__":
    sys.exit(main())
