# src/home_organizer/connectors/matrix_connector.py

"""
Matrix chat connector.

Runs the slash-command registry for messages posted in household rooms.
nio is asyncio-based, so the bot gets its own event loop in a daemon thread
and the console REPL keeps the main thread.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import threading
import time

from nio import AsyncClient, InviteMemberEvent, MatrixRoom, RoomMessageText, exceptions

from ..cli.commands import registry as command_registry
from ..core.state import AppState
from .matrix_client import create_matrix_client

logger = logging.getLogger(__name__)

SYNC_TIMEOUT_MS = 30_000
INTERNAL_ERROR_REPLY = "Internal error while handling a command."


def room_allowlist(settings_rooms: list[str] | None) -> set[str] | None:
    """None means every joined room is allowed."""
    rooms = {str(r).strip() for r in (settings_rooms or [])}
    rooms.discard("")
    return rooms or None


def should_handle(
    *,
    body: str,
    sender: str,
    own_user_id: str | None,
    room_id: str,
    allowed_rooms: set[str] | None,
    server_ts: int | None,
    startup_ts: int,
) -> bool:
    """Only slash-commands from other users, in allowed rooms, sent after startup."""
    if not body.startswith("/"):
        return False
    if sender == own_user_id:
        return False
    if allowed_rooms is not None and room_id not in allowed_rooms:
        return False
    # The initial sync replays history; old commands must not run again.
    return server_ts is None or server_ts > startup_ts


class MatrixChoreBot:
    def __init__(self, state: AppState, client: AsyncClient) -> None:
        self.state = state
        self.client = client
        self.allowed_rooms = room_allowlist(getattr(state.settings, "matrix_rooms", None))
        self.startup_ts = int(time.time() * 1000)

    def attach(self) -> None:
        self.client.add_event_callback(self.on_message, RoomMessageText)
        self.client.add_event_callback(self.on_invite, InviteMemberEvent)

    def reply_for(self, body: str, sender: str, room_id: str) -> str | None:
        try:
            with self.state.lock:
                return command_registry.handle(self.state, body, user_id=sender, room_id=room_id)
        except Exception:
            logger.exception("Command %r from %s crashed.", body, sender)
            return INTERNAL_ERROR_REPLY

    async def send_text(self, room_id: str, text: str) -> None:
        await self.client.room_send(
            room_id=room_id,
            message_type="m.room.message",
            content={"msgtype": "m.text", "body": text},
            ignore_unverified_devices=True,
        )

    async def on_message(self, room: MatrixRoom, event: RoomMessageText) -> None:
        body = (event.body or "").strip()
        if not should_handle(
            body=body,
            sender=event.sender,
            own_user_id=self.client.user_id,
            room_id=room.room_id,
            allowed_rooms=self.allowed_rooms,
            server_ts=getattr(event, "server_timestamp", None),
            startup_ts=self.startup_ts,
        ):
            return

        logger.info("Matrix %s in %s: %r", event.sender, room.room_id, body)
        reply = self.reply_for(body, event.sender, room.room_id)
        if not reply:
            return
        try:
            await self.send_text(room.room_id, reply)
        except exceptions.OlmUnverifiedDeviceError:
            logger.warning("Reply to %s not sent: unverified device.", room.room_id)
        except Exception:
            logger.exception("Reply to %s not sent.", room.room_id)

    async def on_invite(self, room: MatrixRoom, event: InviteMemberEvent) -> None:
        if event.state_key != self.client.user_id or event.membership != "invite":
            return
        if self.allowed_rooms is not None and room.room_id not in self.allowed_rooms:
            logger.info("Ignoring invite to %s (not in HOMEORG_MATRIX_ROOMS).", room.room_id)
            return
        logger.info("Joining %s (invited by %s).", room.room_id, event.sender)
        await self.client.join(room.room_id)

    async def run(self, stop_event: asyncio.Event) -> None:
        logger.info("Matrix rooms: %s", sorted(self.allowed_rooms) if self.allowed_rooms else "ALL")
        await self.client.sync(timeout=SYNC_TIMEOUT_MS, full_state=True)
        logger.info("Matrix initial sync done (%d rooms).", len(self.client.rooms))
        while not stop_event.is_set():
            await self.client.sync(timeout=SYNC_TIMEOUT_MS)


async def run_matrix_bot(state: AppState, stop_event: asyncio.Event) -> None:
    client = await create_matrix_client(state.settings)
    if client is None:
        logger.error("Matrix connector not started.")
        return

    bot = MatrixChoreBot(state, client)
    bot.attach()
    try:
        await bot.run(stop_event)
    except asyncio.CancelledError:
        logger.info("Matrix connector cancelled.")
    except Exception:
        logger.exception("Matrix connector crashed.")
    finally:
        with contextlib.suppress(Exception):
            await client.close()
        logger.info("Matrix connector stopped.")


class MatrixBackgroundRunner:
    """Owns the bot's thread and event loop; stop() is safe from any thread."""

    def __init__(self, state: AppState) -> None:
        self._state = state
        self._ready = threading.Event()
        self._loop: asyncio.AbstractEventLoop | None = None
        self._stop_event: asyncio.Event | None = None
        self.thread = threading.Thread(target=self._main, name="matrix", daemon=True)

    def _main(self) -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        self._loop = loop
        self._stop_event = asyncio.Event()
        self._ready.set()
        try:
            loop.run_until_complete(run_matrix_bot(self._state, self._stop_event))
        finally:
            loop.close()

    def start(self, timeout: float = 5.0) -> bool:
        self.thread.start()
        return self._ready.wait(timeout)

    def stop(self) -> None:
        if self._loop is None or self._stop_event is None:
            return
        try:
            self._loop.call_soon_threadsafe(self._stop_event.set)
        except RuntimeError:
            # Loop already closed.
            logger.debug("Matrix loop gone before stop().")

    def join(self, timeout: float | None = None) -> None:
        self.thread.join(timeout=timeout)


def start_matrix_in_background(state: AppState) -> MatrixBackgroundRunner | None:
    if not getattr(state.settings, "matrix_enabled", False):
        logger.info("Matrix connector disabled.")
        return None

    runner = MatrixBackgroundRunner(state)
    if not runner.start():
        logger.error("Matrix thread did not start in time.")
        return None
    logger.info("Matrix background thread started.")
    return runner
