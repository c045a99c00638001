"""Configuration and environment helpers for the project.

Provides small helpers to read typed environment variables and exposes
project-level configuration constants used across the codebase (Trakt API
endpoint and credentials, cache sizing, bulk-operation pacing, logging).
"""

from __future__ import annotations

import os


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None:
        return default
    try:
        return float(raw.strip())
    except ValueError:
        return default


# Trakt API
TRAKT_API_BASE_URL = os.environ.get("TRAKT_API_BASE_URL", "https://api.trakt.tv").strip()
TRAKT_API_VERSION = os.environ.get("TRAKT_API_VERSION", "2").strip()
TRAKT_CLIENT_ID = os.environ.get("TRAKT_CLIENT_ID", "").strip()
TRAKT_TIMEOUT = _env_float("TRAKT_TIMEOUT", 20.0)

# Network / HTTP
HTTP_VERIFY = _env_bool("HTTP_VERIFY", True)

# Search cache
SEARCH_CACHE_MAXSIZE = _env_int("SEARCH_CACHE_MAXSIZE", 500)
SEARCH_CACHE_TTL_SECONDS = _env_float("SEARCH_CACHE_TTL_SECONDS", 3600.0)
CACHE_PRUNE_INTERVAL_SECONDS = _env_float("CACHE_PRUNE_INTERVAL_SECONDS", 300.0)

# Bulk operations
BULK_MAX_CONCURRENCY = _env_int("BULK_MAX_CONCURRENCY", 5)
BULK_BATCH_SIZE = _env_int("BULK_BATCH_SIZE", 10)
BULK_BATCH_DELAY_MS = _env_int("BULK_BATCH_DELAY_MS", 100)

# Client-side request budget (Trakt: 1000 calls / 5 minutes)
RATE_LIMIT_MAX_REQUESTS = _env_int("RATE_LIMIT_MAX_REQUESTS", 1000)
RATE_LIMIT_WINDOW_SECONDS = _env_float("RATE_LIMIT_WINDOW_SECONDS", 300.0)

# Logging
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").strip().upper() or "INFO"
