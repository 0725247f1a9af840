# src/home_organizer/connectors/console_connector.py

from __future__ import annotations

import logging
import sys
from collections.abc import Callable
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..core.state import AppState

logger = logging.getLogger(__name__)

PROMPT = "chores> "
EXIT_COMMANDS = frozenset({"/exit", "/quit", "/q"})
NOT_A_COMMAND_HINT = "Type a command (see /help), e.g. /chore Water plants weekly sat."


def _stamp(text: str) -> str:
    return f"[{datetime.now().strftime('%H:%M:%S')}] {text}"


def _echo_input(line: str) -> None:
    # On a TTY, overwrite the prompt line with a timestamped copy.
    if sys.stdout.isatty():
        sys.stdout.write("\033[1A\033[2K\r" + _stamp(PROMPT + line) + "\n")
        sys.stdout.flush()


def handle_console_line(state: AppState, user_input: str) -> str:
    """One REPL step: run a command and return the text to print."""
    try:
        with state.lock:
            reply = command_registry.handle(state, user_input, user_id="console")
    except Exception:
        logger.exception("Console command %r crashed.", user_input)
        return "Internal error while handling a command."
    return NOT_A_COMMAND_HINT if reply is None else reply


def run_console_loop(state: AppState, read_line: Callable[[str], str] = input) -> None:
    logger.info("Console started (db=%s).", getattr(state.settings, "db_path", "?"))
    print(_stamp("Household chores. /help lists commands, /exit quits."))

    while True:
        try:
            line = read_line(PROMPT).strip()
        except (EOFError, KeyboardInterrupt):
            print()
            break
        if not line:
            continue
        if line.lower() in EXIT_COMMANDS:
            break
        _echo_input(line)
        print(handle_console_line(state, line))

    logger.info("Console finished.")
