"""Static configuration for birdwatch.

All user-editable settings (resolve profiles, translation, subscriptions,
browser, logging) live in a single JSON file for quick edits without
touching Python. Secrets stay in .env.
"""

import json
import os

from dotenv import load_dotenv

from core.config import (
    PROFILE_PARSE,
    PROFILE_PUSH,
    build_browser_config,
    build_resolve_options,
    build_subscription_config,
)

load_dotenv()

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

# Where to store the SQLite database holding the dedup cursors.
DB_PATH = os.getenv("BIRDWATCH_DB", os.path.join(PROJECT_ROOT, "birdwatch.db"))

# Everything else is loaded from config.json (or BIRDWATCH_CONFIG).
CONFIG_PATH = os.getenv("BIRDWATCH_CONFIG", os.path.join(PROJECT_ROOT, "config.json"))


def _load_json_config() -> dict:
    """Load config.json with a flat, user-friendly schema."""

    if not os.path.exists(CONFIG_PATH):
        raise FileNotFoundError(f"Config file not found: {CONFIG_PATH}")

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        return json.load(handle)


_CONFIG = _load_json_config()

# Expose the raw config for modules that need structured access.
CONFIG = _CONFIG

# Two independent resolve profiles: replies to pasted links and pushes.
PARSE_OPTIONS = build_resolve_options(_CONFIG, PROFILE_PARSE)
PUSH_OPTIONS = build_resolve_options(_CONFIG, PROFILE_PUSH)

# Chats where pasted links are answered; empty means every chat.
PARSE_CHATS = [str(chat) for chat in (_CONFIG.get("parse", {}) or {}).get("chats", [])]

# Tagged variant: SubscriptionsEnabled or SubscriptionsDisabled.
SUBSCRIPTION = build_subscription_config(_CONFIG.get("subscription", {}) or {})

BROWSER = build_browser_config(_CONFIG.get("browser", {}) or {})

# Session cookie (auth_token) used for screenshots and profile pages.
X_AUTH_TOKEN = os.getenv("X_AUTH_TOKEN") or (_CONFIG.get("x", {}) or {}).get("auth_token") or None

# HTTP timeouts for the metadata and translation services.
_http = _CONFIG.get("http", {}) or {}
HTTP_TIMEOUT_SECONDS = float(_http.get("timeout_seconds", 30))
SCREENSHOT_TIMEOUT_SECONDS = float(_http.get("screenshot_timeout_seconds", 60))

# Verbose per-step diagnostics for resolver and poller runs.
LOG_DETAILS = bool((_CONFIG.get("diagnostics", {}) or {}).get("log_details", False))

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})
