# src/home_organizer/core/state.py

from __future__ import annotations

import threading
from dataclasses import dataclass, field

from ..chores.chore_store import ChoreStore


@dataclass
class AppState:
    # Settings object (real Settings or a test SimpleNamespace).
    settings: object
    store: ChoreStore

    # Serializes command handling between the console REPL and the Matrix thread.
    lock: threading.RLock = field(default_factory=threading.RLock)
