"""FastAPI dependencies resolving the per-app collaborators."""

from __future__ import annotations

from fastapi import Request
from starlette.responses import Response

from gmail_oauth_app.auth.oauth import OAuthManager
from gmail_oauth_app.auth.storage import SessionStore
from gmail_oauth_app.config import (
    SESSION_COOKIE_NAME,
    get_session_ttl_seconds,
    is_production,
)
from gmail_oauth_app.gmail.client import GmailRelay
from gmail_oauth_app.middleware.rate_limiter import RateLimiter


def get_store(request: Request) -> SessionStore:
    return request.app.state.session_store


def get_oauth(request: Request) -> OAuthManager:
    return request.app.state.oauth_manager


def get_relay(request: Request) -> GmailRelay:
    return request.app.state.gmail_relay


def get_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.rate_limiter


def get_session_id(request: Request) -> str | None:
    """Read the opaque session identifier from the session cookie."""
    return request.cookies.get(SESSION_COOKIE_NAME) or None


def set_session_cookie(response: Response, session_id: str) -> None:
    """Bind ``session_id`` to the browser with a short-lived HTTP-only cookie."""
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=session_id,
        max_age=get_session_ttl_seconds(),
        httponly=True,
        secure=is_production(),
        samesite="lax",
        path="/",
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(
        key=SESSION_COOKIE_NAME,
        path="/",
        httponly=True,
        secure=is_production(),
        samesite="lax",
    )
