# src/task_reminders/tasks/notified_set.py

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Iterator

from ..core.errors import PersistenceCorrupt
from ..core.ports import ClientState

logger = logging.getLogger(__name__)

NOTIFIED_IDS_KEY = "notified_ids"


def encode_ids(ids: Iterable[str]) -> str:
    return json.dumps(sorted(ids))


def decode_ids(raw: str | None) -> set[str]:
    if raw is None or not raw.strip():
        return set()
    try:
        val = json.loads(raw)
    except ValueError as e:
        raise PersistenceCorrupt(f"notified ids are not JSON: {e}") from e
    if not isinstance(val, list) or not all(isinstance(x, str) for x in val):
        raise PersistenceCorrupt("notified ids must be a JSON list of strings")
    return set(val)


class NotifiedSet:
    """
    Task ids that already fired a reminder.

    Lifecycle:
    - init() loads the persisted set (empty on missing/corrupt data)
    - add()/remove() persist immediately
    - teardown() flushes once more and freezes the set

    Only the reminder engine mutates it.
    """

    def __init__(self, state: ClientState, *, key: str = NOTIFIED_IDS_KEY) -> None:
        self._state = state
        self._key = key
        self._ids: set[str] = set()
        self._closed = False

    def init(self) -> None:
        self._ids = self.load()
        self._closed = False
        logger.info("NotifiedSet loaded: %d ids", len(self._ids))

    def load(self) -> set[str]:
        try:
            return decode_ids(self._state.get(self._key))
        except PersistenceCorrupt as e:
            logger.warning("Resetting notified set: %s", e)
            return set()

    def save(self, ids: Iterable[str] | None = None) -> None:
        payload = encode_ids(self._ids if ids is None else ids)
        try:
            self._state.set(self._key, payload)
        except OSError:
            # In-memory set stays authoritative for this process.
            logger.exception("Failed to persist notified set")

    def contains(self, task_id: str) -> bool:
        return task_id in self._ids

    def add(self, task_id: str) -> None:
        if self._closed:
            logger.debug("NotifiedSet closed; ignoring add(%s)", task_id)
            return
        if task_id in self._ids:
            return
        self._ids.add(task_id)
        self.save()

    def remove(self, task_id: str) -> None:
        if self._closed:
            logger.debug("NotifiedSet closed; ignoring remove(%s)", task_id)
            return
        if task_id not in self._ids:
            return
        self._ids.discard(task_id)
        self.save()

    def ids(self) -> frozenset[str]:
        return frozenset(self._ids)

    def teardown(self) -> None:
        if self._closed:
            return
        self.save()
        self._closed = True

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._ids))
