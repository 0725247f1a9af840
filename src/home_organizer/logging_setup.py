# src/home_organizer/logging_setup.py

from __future__ import annotations

import logging
import sys
from pathlib import Path

LOG_FILE_NAME = "home-organizer.log"
LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)-7s %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Minimum level per logger-name prefix on the console. Longest prefix wins.
# Anything not listed (nio, aiohttp, py.warnings, ...) only shows ERROR+.
CONSOLE_MIN_LEVELS: dict[str, int] = {
    "home_organizer": logging.DEBUG,
    # The Matrix thread logs every sync; keep the REPL prompt readable.
    "home_organizer.connectors.matrix_": logging.WARNING,
    # Resolver debug lines are per month; file only.
    "home_organizer.chores.occurrences": logging.INFO,
}


class ConsoleLevelFilter(logging.Filter):
    def __init__(self, levels: dict[str, int] | None = None, default: int = logging.ERROR) -> None:
        super().__init__()
        self._levels = sorted((levels or CONSOLE_MIN_LEVELS).items(), key=lambda kv: -len(kv[0]))
        self._default = default

    def min_level_for(self, name: str) -> int:
        for prefix, level in self._levels:
            if name == prefix or name.startswith(prefix):
                return level
        return self._default

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= self.min_level_for(record.name)


def setup_logging(
    *,
    log_dir: str | Path = ".local/home_organizer",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> Path:
    """
    Console (filtered, stderr) plus a full log file under log_dir.

    Replaces any handlers already on the root logger, so it is safe to call again
    (e.g. from tests). Returns the log file path.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME

    root = logging.getLogger()
    root.setLevel(min(console_level, file_level))
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(formatter)
    console.addFilter(ConsoleLevelFilter())

    to_file = logging.FileHandler(str(log_file), encoding="utf-8")
    to_file.setLevel(file_level)
    to_file.setFormatter(formatter)

    root.addHandler(console)
    root.addHandler(to_file)
    logging.captureWarnings(True)
    return log_file
