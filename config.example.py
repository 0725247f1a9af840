# config.example.py

"""
Documentation-only module (safe to commit).

Configuration is read from HOMEORG_* environment variables, optionally from a
local .env file (python-dotenv). Keep the Matrix password out of git.
"""

ENV_VARS = {
    # App / logging
    "HOMEORG_APP_NAME": "App display name (default: home-organizer).",
    "HOMEORG_LOG_LEVEL": "Console logging level (default: INFO).",
    # Connectors
    "HOMEORG_CONSOLE_ENABLED": "Enable the console REPL (true/false, default true).",
    "HOMEORG_MATRIX_ENABLED": "Enable the Matrix chat connector (true/false, default false).",
    # Matrix
    "HOMEORG_MATRIX_HOMESERVER": "Matrix homeserver URL.",
    "HOMEORG_MATRIX_USER_ID": "Matrix user ID of the bot.",
    "HOMEORG_MATRIX_PASSWORD": "Password for the first login (the session is stored locally).",
    "HOMEORG_MATRIX_ROOMS": "Optional allowlist of room IDs (empty => all joined rooms).",
    # Paths (gitignored)
    "HOMEORG_DATA_DIR": "Local data directory (default: .local/home_organizer).",
    "HOMEORG_DB_PATH": "SQLite database (default: <data_dir>/home-organizer.sqlite3).",
    "HOMEORG_MATRIX_STORE_PATH": "Matrix session store (default: <data_dir>/matrix_store).",
    # Scheduling
    "HOMEORG_UPCOMING_DAYS": "Lookahead for /upcoming without an argument (default: 30).",
    "HOMEORG_TIMEZONE": "IANA zone name stored on new rules (informational only).",
}
