# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # App / logging
    "TODO_APP_NAME": "Service name reported by the health check (default: todo-app).",
    "TODO_LOG_LEVEL": "Console logging level (default: INFO).",
    "TODO_ENV": "Environment label reported by the health check (fallback: NODE_ENV, default: development).",
    # HTTP server
    "TODO_HOST": "Bind address for `todo-app serve` (default: 0.0.0.0).",
    "TODO_PORT": "Port for `todo-app serve` (fallback: PORT, default: 4000).",
    "TODO_HEALTHCHECK_PATH": "Health endpoint path (default: /healthz).",
    "TODO_CORS_ALLOW_ORIGINS": "Comma/space separated allowed origins (default: *).",
    # Paths (gitignored)
    "TODO_DATA_DIR": "Local data directory for the database and logs (default: .local/todo).",
    "TODO_DB_PATH": "SQLite database path (default: <data_dir>/todo.sqlite3).",
    # Console client
    "TODO_API_BASE": "API base URL used by `todo-app console` (default: http://localhost:4000).",
    "TODO_BACKEND_URL": "Fallback for TODO_API_BASE.",
    "TODO_API_TIMEOUT_SECONDS": "Per-request timeout of the console client (default: 10).",
}
