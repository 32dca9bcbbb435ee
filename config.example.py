# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Do NOT commit real tokens. Use:
- .env (local, gitignored)
- OUTREACH_API_TOKEN, or `bulk-outreach --login USER` which stores the token under the data dir

This file exists to make the repo self-documenting even without opening .env.example.
"""

ENV_VARS = {
    # App / logging
    "OUTREACH_APP_NAME": "App display name (default: bulk-outreach).",
    "OUTREACH_LOG_LEVEL": "Console logging level (default: INFO). The log file always gets DEBUG.",
    # Job service
    "OUTREACH_API_BASE_URL": "Job service base URL (default: http://localhost:8000/api).",
    "OUTREACH_API_TOKEN": "API token sent with every request (overrides a stored login).",
    "OUTREACH_AUTH_SCHEME": "Authorization scheme prefix (default: Token; e.g. Bearer).",
    "OUTREACH_CONNECT_TIMEOUT_SECONDS": "HTTP connect timeout (default: 5).",
    "OUTREACH_READ_TIMEOUT_SECONDS": "HTTP read timeout (default: 30).",
    # Polling
    "OUTREACH_POLL_INTERVAL_SECONDS": "Seconds between status requests per task (default: 2).",
    "OUTREACH_POLL_MAX_ERRORS": "Stop polling a task after this many failed requests in a row (default: never).",
    "OUTREACH_POLL_BACKOFF_FACTOR": "Multiply the interval by this after each failed request (default: 1 = fixed).",
    "OUTREACH_POLL_MAX_INTERVAL_SECONDS": "Upper bound for the backed-off interval (default: 30).",
    # Notifications
    "OUTREACH_NOTIFICATION_TTL_SECONDS": "How long a notification stays queued (default: 5).",
    # Paths (gitignored)
    "OUTREACH_DATA_DIR": "Local data directory for logs and credentials (default: .local/outreach).",
    "OUTREACH_CREDENTIALS_PATH": "Stored login token (default: <data_dir>/auth.json).",
    "OUTREACH_PERSIST_CREDENTIALS": "Keep the login token on disk between runs (true/false, default: true).",
}
