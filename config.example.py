# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Do NOT commit real secrets; keep them in .env (local, gitignored).

This file exists to make the repo self-documenting even without opening .env.
"""

ENV_VARS = {
    # App / logging
    "TASKREM_APP_NAME": "App display name (default: task-reminders).",
    "TASKREM_LOG_LEVEL": "Console logging level (default: INFO). The log file always gets DEBUG.",
    # Paths (gitignored)
    "TASKREM_DATA_DIR": "Local data directory (default: .local/task_reminders).",
    "TASKREM_TASKS_DB_PATH": "SQLite task store path (default: <data_dir>/tasks.sqlite3).",
    "TASKREM_CLIENT_STATE_PATH": (
        "Reminder state JSON path: enabled flag + notified ids (default: <data_dir>/client_state.json)."
    ),
    # Task store
    "TASKREM_STORE_BACKEND": "sqlite (local file) or http (REST task service). Default: sqlite.",
    "TASKREM_STORE_URL": "Base URL of the REST task service (default: http://localhost:5000).",
    "TASKREM_STORE_TIMEOUT_SECONDS": "HTTP timeout per request (default: 10).",
    # Reminder engine
    "TASKREM_REFRESH_INTERVAL_SECONDS": "How often the task snapshot is reloaded (default: 60).",
    "TASKREM_REMINDER_INTERVAL_SECONDS": "How often due tasks are scanned (default: 30).",
    "TASKREM_WINDOW_BEFORE_SECONDS": "Remind this long before the due instant (default: 600).",
    "TASKREM_WINDOW_AFTER_SECONDS": "Still remind this long after the due instant (default: 60).",
    # Notifications
    "TASKREM_NOTIFIER": "console, matrix or none (default: console).",
    "TASKREM_CONSOLE_ENABLED": "Run the interactive console (true/false, default: true).",
    # Matrix (only with TASKREM_NOTIFIER=matrix)
    "TASKREM_MATRIX_HOMESERVER": "Matrix homeserver URL.",
    "TASKREM_MATRIX_USER_ID": "Matrix user ID (bot).",
    "TASKREM_MATRIX_PASSWORD": "Password for first login (session stored locally).",
    "TASKREM_MATRIX_ROOMS": "Room ID(s) to post reminders to (empty => first joined room).",
    "TASKREM_MATRIX_STORE_PATH": "Matrix session directory (default: <data_dir>/matrix_store).",
}
