"""Environment-driven configuration helpers.

All settings are read from environment variables at call time, so tests can
override them with ``patch.dict(os.environ, ...)``. ``python -m
gmail_oauth_app`` loads a ``.env`` file before any of these are read.
"""

from __future__ import annotations

import logging
import os

logger = logging.getLogger(__name__)

SESSION_COOKIE_NAME = "sessionId"
DEFAULT_PORT = 3000
DEFAULT_SESSION_TTL_SECONDS = 15 * 60


def get_environment() -> str:
    """Get the deployment environment name (``development`` by default)."""
    return os.getenv("APP_ENV", "development").lower()


def is_production() -> bool:
    """Check if the app runs in its production posture.

    Production enables secure cookies, HSTS and hides error details.
    """
    return get_environment() == "production"


def _get_int(name: str, default: int) -> int:
    """Read an integer environment variable, falling back on bad values."""
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Invalid %s value %r, using default %d", name, raw, default)
        return default


def get_port() -> int:
    """Get the HTTP port the server binds to."""
    return _get_int("PORT", DEFAULT_PORT)


def get_host() -> str:
    """Get the interface the server binds to."""
    return os.getenv("HOST", "0.0.0.0")


def get_session_ttl_seconds() -> int:
    """Get the lifetime of a session record and its cookie, in seconds."""
    return _get_int("SESSION_TTL_SECONDS", DEFAULT_SESSION_TTL_SECONDS)


def get_rate_limit() -> tuple[int, int]:
    """Get the per-client request budget as ``(max_requests, window_seconds)``."""
    return (
        _get_int("RATE_LIMIT_MAX", 300),
        _get_int("RATE_LIMIT_WINDOW_SECONDS", 15 * 60),
    )


def is_audit_enabled() -> bool:
    """Check if JSON audit lines should be written to stderr."""
    return os.getenv("AUDIT_LOG_ENABLED", "true").lower() in ("true", "1", "yes")


__all__ = [
    "SESSION_COOKIE_NAME",
    "DEFAULT_PORT",
    "DEFAULT_SESSION_TTL_SECONDS",
    "get_environment",
    "is_production",
    "get_port",
    "get_host",
    "get_session_ttl_seconds",
    "get_rate_limit",
    "is_audit_enabled",
]
