# src/task_reminders/tasks/http_store.py

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

import httpx

from ..core.errors import NotFound, StoreUnavailable, ValidationFailed
from .date_classifier import normalize_due_date
from .task_models import UNSET, Task, Unset

logger = logging.getLogger(__name__)


def _parse_ts(raw: Any) -> float | None:
    """ISO-8601 string (with or without 'Z') or epoch number -> epoch seconds."""
    if raw is None or raw == "":
        return None
    if isinstance(raw, (int, float)):
        # Epoch milliseconds are common in JSON APIs.
        val = float(raw)
        return val / 1000.0 if val > 1e11 else val
    s = str(raw).strip()
    if s.endswith("Z"):
        s = s[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(s)
    except ValueError:
        logger.debug("Unparseable timestamp %r", raw)
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.timestamp()


def task_from_json(data: dict[str, Any]) -> Task:
    """Build a Task from the REST representation (_id/id, camelCase fields)."""
    task_id = data.get("_id", data.get("id"))
    if task_id is None:
        raise ValueError("task JSON has no id")

    completed = bool(data.get("completed", False))
    due_raw = data.get("dueDate")
    due_date: str | None = None
    if isinstance(due_raw, str) and due_raw.strip():
        # Tolerate full timestamps; the calendar date is the first 10 chars.
        due_date = due_raw.strip()[:10]

    return Task(
        id=str(task_id),
        title=str(data.get("title") or ""),
        completed=completed,
        created_at=_parse_ts(data.get("createdAt")) or 0.0,
        completed_at=_parse_ts(data.get("completedAt")) if completed else None,
        due_date=due_date,
    )


def _error_text(resp: httpx.Response) -> str:
    try:
        payload = resp.json()
    except ValueError:
        return resp.text[:200]
    if isinstance(payload, dict) and payload.get("error"):
        return str(payload["error"])
    return resp.text[:200]


class HttpTaskStore:
    """
    Client for the REST task service.

    Endpoints:
    - GET    /api/tasks            -> list, newest first
    - GET    /api/tasks/overdue    -> open tasks with dueDate < today
    - POST   /api/tasks            -> 201 + created task
    - PUT    /api/tasks/{id}       -> updated task
    - DELETE /api/tasks/{id}       -> 204

    Error mapping: transport errors and 5xx -> StoreUnavailable,
    404 -> NotFound, 400/422 -> ValidationFailed.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout_seconds: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._client = httpx.Client(
            base_url=self._base_url,
            timeout=httpx.Timeout(timeout_seconds, connect=min(5.0, timeout_seconds)),
            headers={"Accept": "application/json"},
            transport=transport,
        )
        logger.info("HttpTaskStore ready base_url=%s", self._base_url)

    def close(self) -> None:
        self._client.close()

    def _request(self, method: str, path: str, *, task_id: str | None = None, **kwargs: Any) -> httpx.Response:
        try:
            resp = self._client.request(method, path, **kwargs)
        except httpx.TransportError as e:
            raise StoreUnavailable(f"{method} {path} failed: {e!r}") from e

        if resp.status_code == 404:
            raise NotFound(task_id or path)
        if resp.status_code in (400, 422):
            raise ValidationFailed(_error_text(resp))
        if resp.status_code >= 500:
            raise StoreUnavailable(f"{method} {path} -> {resp.status_code}: {_error_text(resp)}")
        if resp.status_code >= 400:
            raise StoreUnavailable(f"{method} {path} -> unexpected {resp.status_code}")
        return resp

    def _json(self, resp: httpx.Response) -> Any:
        try:
            return resp.json()
        except ValueError as e:
            raise StoreUnavailable(f"invalid JSON from task service: {e}") from e

    def _task_list(self, resp: httpx.Response) -> list[Task]:
        data = self._json(resp)
        if not isinstance(data, list):
            raise StoreUnavailable("task service returned a non-list payload")
        out: list[Task] = []
        for item in data:
            if not isinstance(item, dict):
                continue
            try:
                out.append(task_from_json(item))
            except ValueError:
                logger.warning("Skipping malformed task payload: %r", item)
        return out

    def _task(self, resp: httpx.Response) -> Task:
        data = self._json(resp)
        if not isinstance(data, dict):
            raise StoreUnavailable("task service returned a non-object payload")
        try:
            return task_from_json(data)
        except ValueError as e:
            raise StoreUnavailable(str(e)) from e

    # ---- public API ----

    def list_tasks(self) -> list[Task]:
        return self._task_list(self._request("GET", "/api/tasks"))

    def list_overdue_tasks(self, today: str | None = None) -> list[Task]:
        # "today" is decided by the server.
        return self._task_list(self._request("GET", "/api/tasks/overdue"))

    def get_task(self, task_id: str) -> Task | None:
        # No single-item endpoint; look it up in the list.
        for task in self.list_tasks():
            if task.id == task_id:
                return task
        return None

    def count_tasks(self) -> int:
        return len(self.list_tasks())

    def add_task(self, *, title: str, due_date: str | None = None) -> Task:
        if title is None or not str(title).strip():
            raise ValidationFailed("title is required")
        body = {"title": str(title).strip(), "dueDate": normalize_due_date(due_date)}
        return self._task(self._request("POST", "/api/tasks", json=body))

    def update_task(
        self,
        task_id: str,
        *,
        title: str | Unset = UNSET,
        completed: bool | Unset = UNSET,
        due_date: str | None | Unset = UNSET,
    ) -> Task:
        body: dict[str, Any] = {}
        if not isinstance(title, Unset):
            if not str(title).strip():
                raise ValidationFailed("title is required")
            body["title"] = str(title).strip()
        if not isinstance(completed, Unset):
            body["completed"] = bool(completed)
        if not isinstance(due_date, Unset):
            body["dueDate"] = normalize_due_date(due_date)

        resp = self._request("PUT", f"/api/tasks/{task_id}", task_id=task_id, json=body)
        return self._task(resp)

    def delete_task(self, task_id: str) -> None:
        # The service answers 204 for an id that is already gone; 400 means a
        # malformed id or a server-side failure, so the task may still exist.
        self._request("DELETE", f"/api/tasks/{task_id}", task_id=task_id)
