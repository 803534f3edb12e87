# config.example.py

"""
Documentation-only module (safe to commit).

The real configuration is loaded from environment variables (optionally via a local .env file).
Do NOT commit real secrets. Keep the Supabase anon key and the OpenRouter key in .env (gitignored).

This file exists to make the repo self-documenting even without opening .env.
"""

ENV_VARS = {
    # App / logging
    "ZEN_APP_NAME": "App display name (default: zenpriority).",
    "ZEN_LOG_LEVEL": "Console logging level (default: INFO). The log file always gets DEBUG.",
    "ZEN_DATA_DIR": "Local data directory for logs and the SQLite file (default: .local/zenpriority).",
    # Task store
    "ZEN_STORE_BACKEND": "supabase | sqlite (default: supabase when URL and key are set, else sqlite).",
    "ZEN_SUPABASE_URL": "Supabase project URL (SUPABASE_URL is also accepted).",
    "ZEN_SUPABASE_ANON_KEY": "Supabase anon key (SUPABASE_ANON_KEY is also accepted).",
    "ZEN_TASKS_TABLE": "Name of the tasks table (default: tasks).",
    "ZEN_TASKS_DB_PATH": "SQLite file for the local backend (default: <data_dir>/tasks.sqlite3).",
    "ZEN_STORE_CONNECT_TIMEOUT_SECONDS": "Connect timeout for the remote store (default: 5).",
    "ZEN_STORE_READ_TIMEOUT_SECONDS": "Read timeout for the remote store (default: 15).",
    # LLM / OpenRouter
    "ZEN_OPENROUTER_API_KEY": "OpenRouter API key (without it the offline assistant is used).",
    "ZEN_OPENROUTER_BASE_URL": "OpenRouter base URL (default: https://openrouter.ai/api/v1).",
    "ZEN_LLM_MODELS": "Comma/space separated list of models to try in order.",
    "ZEN_HTTP_REFERER": "Optional OpenRouter metadata header.",
    "ZEN_APP_TITLE": "Optional OpenRouter metadata header title.",
    "ZEN_LLM_FIRST_TOKEN_TIMEOUT_SECONDS": "Give up on a model if no token arrives in time (default: 20).",
    "ZEN_LLM_READ_TIMEOUT_SECONDS": "LLM read timeout, never below the first-token timeout (default: 25).",
    "ZEN_LLM_CONNECT_TIMEOUT_SECONDS": "LLM connect timeout (default: 5).",
}
