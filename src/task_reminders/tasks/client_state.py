# src/task_reminders/tasks/client_state.py

from __future__ import annotations

import contextlib
import json
import logging
import os
from pathlib import Path

from ..core.errors import PersistenceCorrupt

logger = logging.getLogger(__name__)


class ClientStateFile:
    """
    Persisted client key/value state (JSON object in a single file).

    Values are opaque strings; callers encode their own payloads (JSON flag,
    JSON list of ids, ...). Every set/delete writes through atomically
    (tmp file + os.replace).

    A missing, empty or unreadable file starts as an empty mapping; the
    process never fails to start because of it.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._closed = False
        try:
            self._data = self._read()
        except PersistenceCorrupt as e:
            logger.warning("Client state %s is corrupt (%s); starting empty.", self._path, e)
            self._data = {}
        logger.info("ClientStateFile ready path=%s keys=%d", self._path, len(self._data))

    @property
    def path(self) -> Path:
        return self._path

    def _read(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            raw = self._path.read_text("utf-8")
        except OSError as e:
            raise PersistenceCorrupt(f"unreadable: {e!r}") from e
        if not raw.strip():
            return {}
        try:
            data = json.loads(raw)
        except ValueError as e:
            raise PersistenceCorrupt(f"invalid JSON: {e}") from e
        if not isinstance(data, dict):
            raise PersistenceCorrupt("expected a JSON object")
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def _write(self) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(".tmp")
        tmp.write_text(json.dumps(self._data, ensure_ascii=False, indent=2), "utf-8")
        os.replace(tmp, self._path)
        with contextlib.suppress(Exception):
            os.chmod(self._path, 0o600)

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        if self._closed:
            logger.debug("ClientStateFile closed; ignoring set(%s).", key)
            return
        self._data[key] = value
        self._write()

    def delete(self, key: str) -> None:
        if self._closed:
            logger.debug("ClientStateFile closed; ignoring delete(%s).", key)
            return
        if self._data.pop(key, None) is not None:
            self._write()

    def flush(self) -> None:
        if self._closed:
            return
        try:
            self._write()
        except OSError:
            logger.exception("Failed to flush client state to %s", self._path)

    def close(self) -> None:
        """Final flush; later mutations are ignored."""
        self.flush()
        self._closed = True
