# src/task_reminders/connectors/matrix_client.py

"""
Matrix client bootstrap for the reminder sink.

A session (access token + device id) is kept in <matrix_store_path>/session.json
so the password is only needed once. No E2EE store is kept: reminders should
target unencrypted rooms.
"""

from __future__ import annotations

import contextlib
import json
import logging
import os
from dataclasses import asdict, dataclass
from pathlib import Path

from nio import AsyncClient, AsyncClientConfig, LoginResponse

logger = logging.getLogger(__name__)

SESSION_FILE = "session.json"


@dataclass(frozen=True, slots=True)
class MatrixSession:
    user_id: str
    device_id: str
    access_token: str

    @classmethod
    def load(cls, path: Path) -> MatrixSession | None:
        """Read a saved session; None if missing or unusable."""
        if not path.exists():
            return None
        try:
            data = json.loads(path.read_text("utf-8"))
            session = cls(
                user_id=str(data["user_id"]),
                device_id=str(data["device_id"]),
                access_token=str(data["access_token"]),
            )
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning("Ignoring unusable Matrix session %s: %r", path, e)
            return None
        if not (session.user_id and session.device_id and session.access_token):
            logger.warning("Ignoring incomplete Matrix session %s", path)
            return None
        return session

    def save(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(".tmp")
        tmp.write_text(json.dumps(asdict(self), ensure_ascii=False), "utf-8")
        os.replace(tmp, path)
        with contextlib.suppress(Exception):
            os.chmod(path, 0o600)

    def apply(self, client: AsyncClient) -> None:
        client.access_token = self.access_token
        client.user_id = self.user_id
        client.device_id = self.device_id


def _setting(settings, name: str) -> str:
    return (getattr(settings, name, "") or "").strip()


def matrix_configured(settings) -> bool:
    return bool(_setting(settings, "matrix_homeserver") and _setting(settings, "matrix_user_id"))


def session_path(settings) -> Path:
    store_dir = Path(getattr(settings, "matrix_store_path", Path(".local/task_reminders/matrix_store")))
    return store_dir / SESSION_FILE


async def _password_login(client: AsyncClient, settings, path: Path) -> bool:
    password = _setting(settings, "matrix_password")
    if not password:
        logger.error("No Matrix session at %s and TASKREM_MATRIX_PASSWORD is not set.", path)
        return False

    device_name = f"{getattr(settings, 'app_name', 'task-reminders')} reminders"
    resp = await client.login(password=password, device_name=device_name)
    if not isinstance(resp, LoginResponse):
        logger.error("Matrix login failed: %r", resp)
        return False

    session = MatrixSession(user_id=resp.user_id, device_id=resp.device_id, access_token=resp.access_token)
    try:
        session.save(path)
    except OSError as e:
        # Logged in anyway; the next start needs the password again.
        logger.error("Failed to save Matrix session to %s: %r", path, e)
    logger.info("Matrix login ok for %s (device %s)", resp.user_id, resp.device_id)
    return True


async def create_matrix_client(settings) -> AsyncClient | None:
    """Return a logged-in AsyncClient, or None if Matrix is unusable."""
    if not matrix_configured(settings):
        logger.error("Matrix is not configured: set TASKREM_MATRIX_HOMESERVER and TASKREM_MATRIX_USER_ID")
        return None

    client = AsyncClient(
        _setting(settings, "matrix_homeserver"),
        _setting(settings, "matrix_user_id"),
        config=AsyncClientConfig(encryption_enabled=False, store_sync_tokens=False),
    )

    path = session_path(settings)
    session = MatrixSession.load(path)
    if session is not None:
        session.apply(client)
        logger.info("Matrix session restored for %s", session.user_id)
        return client

    if await _password_login(client, settings, path):
        return client

    await client.close()
    return None
