# src/home_organizer/connectors/matrix_client.py

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass
from pathlib import Path

from nio import AsyncClient, AsyncClientConfig, LoginResponse

logger = logging.getLogger(__name__)

SESSION_FILE = "session.json"

# E2EE needs the optional python-olm extra of matrix-nio.
try:
    import olm  # type: ignore  # noqa: F401

    OLM_AVAILABLE = True
except ImportError:
    OLM_AVAILABLE = False


@dataclass(slots=True, frozen=True)
class MatrixSession:
    access_token: str
    user_id: str
    device_id: str


def load_session(store_dir: Path) -> MatrixSession | None:
    path = store_dir / SESSION_FILE
    if not path.exists():
        return None
    try:
        data = json.loads(path.read_text("utf-8"))
        return MatrixSession(
            access_token=str(data["access_token"]),
            user_id=str(data["user_id"]),
            device_id=str(data["device_id"]),
        )
    except (OSError, ValueError, TypeError, KeyError) as e:
        logger.warning("Ignoring unreadable %s: %r", path, e)
        return None


def save_session(store_dir: Path, session: MatrixSession) -> Path:
    path = store_dir / SESSION_FILE
    tmp = path.with_suffix(".tmp")
    tmp.write_text(json.dumps(asdict(session)), "utf-8")
    os.replace(tmp, path)
    try:
        os.chmod(path, 0o600)
    except OSError:
        logger.debug("chmod not supported for %s", path)
    return path


async def create_matrix_client(settings) -> AsyncClient | None:
    """
    Logged-in AsyncClient for the bot account, or None if Matrix is not usable.

    A saved session is reused; the password is only needed for the first login.
    """
    homeserver = (settings.matrix_homeserver or "").strip()
    user_id = (settings.matrix_user_id or "").strip()
    if not homeserver or not user_id:
        logger.error("Matrix needs HOMEORG_MATRIX_HOMESERVER and HOMEORG_MATRIX_USER_ID.")
        return None

    store_dir = Path(settings.matrix_store_path)
    store_dir.mkdir(parents=True, exist_ok=True)
    if not OLM_AVAILABLE:
        logger.warning("python-olm not installed; encrypted rooms will not work.")

    client = AsyncClient(
        homeserver,
        user_id,
        store_path=str(store_dir) if OLM_AVAILABLE else None,
        config=AsyncClientConfig(encryption_enabled=OLM_AVAILABLE, store_sync_tokens=True),
    )

    session = load_session(store_dir)
    if session is not None:
        client.restore_login(session.user_id, session.device_id, session.access_token)
        logger.info("Matrix session restored for %s", session.user_id)
        return client

    password = (settings.matrix_password or "").strip()
    if not password:
        logger.error("No saved Matrix session; set HOMEORG_MATRIX_PASSWORD once to log in.")
        await client.close()
        return None

    resp = await client.login(password=password, device_name=f"{settings.app_name} (chores bot)")
    if not isinstance(resp, LoginResponse):
        logger.error("Matrix login failed: %r", resp)
        await client.close()
        return None

    try:
        path = save_session(store_dir, MatrixSession(resp.access_token, resp.user_id, resp.device_id))
        logger.info("Matrix session saved to %s", path)
    except OSError as e:
        logger.error("Could not save the Matrix session: %r", e)
    return client
