# src/task_reminders/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- No secrets required at import time.
- Components receive settings by injection; get_settings() is for entry points.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "TASKREM"

STORE_BACKENDS = ("sqlite", "http")
NOTIFIERS = ("console", "matrix", "none")


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_list(name: str, default: list[str]) -> list[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default)
    return [p.strip() for p in raw.replace(",", " ").split() if p.strip()]


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


def _env_choice(name: str, default: str, choices: tuple[str, ...]) -> str:
    raw = _env(name, default).strip().lower()
    return raw if raw in choices else default


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    tasks_db_path: Path
    client_state_path: Path

    # ---- Task store ----
    store_backend: str
    store_url: str
    store_timeout_seconds: float

    # ---- Reminder engine ----
    refresh_interval_seconds: float
    reminder_interval_seconds: float
    window_before_seconds: float
    window_after_seconds: float

    # ---- Notifications ----
    notifier: str
    console_enabled: bool

    # ---- Matrix ----
    matrix_homeserver: str
    matrix_user_id: str
    matrix_password: str
    matrix_rooms: list[str]
    matrix_store_path: Path

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "task-reminders").strip() or "task-reminders"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/task_reminders"))
        tasks_db_path = _env_path(_k("TASKS_DB_PATH"), data_dir / "tasks.sqlite3")
        client_state_path = _env_path(_k("CLIENT_STATE_PATH"), data_dir / "client_state.json")

        store_backend = _env_choice(_k("STORE_BACKEND"), "sqlite", STORE_BACKENDS)
        store_url = _env(_k("STORE_URL"), "http://localhost:5000").strip()
        store_timeout_seconds = _env_float(_k("STORE_TIMEOUT_SECONDS"), 10.0)

        refresh_interval_seconds = _env_float(_k("REFRESH_INTERVAL_SECONDS"), 60.0)
        reminder_interval_seconds = _env_float(_k("REMINDER_INTERVAL_SECONDS"), 30.0)
        window_before_seconds = _env_float(_k("WINDOW_BEFORE_SECONDS"), 600.0)
        window_after_seconds = _env_float(_k("WINDOW_AFTER_SECONDS"), 60.0)

        notifier = _env_choice(_k("NOTIFIER"), "console", NOTIFIERS)
        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)

        matrix_homeserver = _env(_k("MATRIX_HOMESERVER")).strip()
        matrix_user_id = _env(_k("MATRIX_USER_ID")).strip()
        matrix_password = _env(_k("MATRIX_PASSWORD")).strip()
        matrix_rooms = _env_list(_k("MATRIX_ROOMS"), [])
        matrix_store_path = _env_path(_k("MATRIX_STORE_PATH"), data_dir / "matrix_store")

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            tasks_db_path=tasks_db_path,
            client_state_path=client_state_path,
            store_backend=store_backend,
            store_url=store_url,
            store_timeout_seconds=store_timeout_seconds,
            refresh_interval_seconds=refresh_interval_seconds,
            reminder_interval_seconds=reminder_interval_seconds,
            window_before_seconds=window_before_seconds,
            window_after_seconds=window_after_seconds,
            notifier=notifier,
            console_enabled=console_enabled,
            matrix_homeserver=matrix_homeserver,
            matrix_user_id=matrix_user_id,
            matrix_password=matrix_password,
            matrix_rooms=matrix_rooms,
            matrix_store_path=matrix_store_path,
        )


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    """Process-wide settings; loads .env on first use."""
    global _SETTINGS
    if _SETTINGS is None:
        load_dotenv(override=False)
        _SETTINGS = Settings.from_env()
    return _SETTINGS
