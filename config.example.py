# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Keep local paths in .env (gitignored).

This file exists to make the repo self-documenting even without opening .env.
"""

ENV_VARS = {
    # App / logging
    "TASKTIME_APP_NAME": "App display name (default: tasktime).",
    "TASKTIME_LOG_LEVEL": "Console logging level (default: INFO). The log file always gets DEBUG.",
    # Connectors
    "TASKTIME_CONSOLE_ENABLED": "Run the interactive console (true/false, default: true).",
    # Paths (gitignored)
    "TASKTIME_DATA_DIR": "Local data directory (default: .local/tasktime).",
    "TASKTIME_TASKS_DB_PATH": "TaskStore SQLite path (default: <data_dir>/tasks.sqlite3).",
    # Time tracking
    "TASKTIME_DEFAULT_DESCRIPTION": (
        "Description used when a session is started with an empty one (default: Work session)."
    ),
}
