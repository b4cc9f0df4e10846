# src/task_reminders/connectors/matrix_notifier.py

from __future__ import annotations

import logging

from nio import AsyncClient, JoinedRoomsResponse, RoomSendResponse

from ..tasks.task_models import PermissionState
from .matrix_client import create_matrix_client, matrix_configured

logger = logging.getLogger(__name__)


class MatrixNotifier:
    """
    Delivers reminders as Matrix room messages.

    "Permission" maps to having a working session and a target room:
    - not_asked until request_permission() tries to log in
    - granted once a client and a room are available
    - denied if login fails or no room can be resolved

    The nio client lives on the engine loop; all methods must run there.
    """

    def __init__(self, settings) -> None:
        self._settings = settings
        self._client: AsyncClient | None = None
        self._room_id: str | None = None
        self._permission = PermissionState.NOT_ASKED

    def is_supported(self) -> bool:
        return matrix_configured(self._settings)

    def permission_state(self) -> PermissionState:
        return self._permission

    async def _resolve_room(self, client: AsyncClient) -> str | None:
        rooms = [r.strip() for r in (getattr(self._settings, "matrix_rooms", []) or []) if str(r).strip()]
        if rooms:
            return rooms[0]

        resp = await client.joined_rooms()
        if isinstance(resp, JoinedRoomsResponse) and resp.rooms:
            return resp.rooms[0]
        logger.warning("Matrix: no target room configured and no joined rooms (%r)", resp)
        return None

    async def request_permission(self) -> PermissionState:
        if self._client is None:
            try:
                self._client = await create_matrix_client(self._settings)
            except Exception:
                logger.exception("Matrix client creation failed.")
                self._client = None

        if self._client is None:
            self._permission = PermissionState.DENIED
            return self._permission

        try:
            self._room_id = await self._resolve_room(self._client)
        except Exception:
            logger.exception("Matrix room lookup failed.")
            self._room_id = None

        self._permission = PermissionState.GRANTED if self._room_id else PermissionState.DENIED
        logger.info("Matrix notifier permission=%s room=%s", self._permission.value, self._room_id)
        return self._permission

    async def send(self, title: str, body: str) -> None:
        if self._client is None or not self._room_id:
            raise RuntimeError("Matrix notifier is not authorized")

        resp = await self._client.room_send(
            room_id=self._room_id,
            message_type="m.room.message",
            content={"msgtype": "m.text", "body": f"{title}: {body}"},
        )
        if not isinstance(resp, RoomSendResponse):
            raise RuntimeError(f"Matrix room_send failed: {resp!r}")
        logger.info("Matrix reminder sent to %s", self._room_id)

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None
