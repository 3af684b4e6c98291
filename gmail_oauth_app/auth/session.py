"""Pydantic models for server-side session records.

The browser only holds an opaque session identifier in a cookie. Everything
authoritative (CSRF state, OAuth tokens, Google profile) lives in a
``SessionRecord`` kept by a session store and keyed by that identifier.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from gmail_oauth_app.auth.state import generate_token
from gmail_oauth_app.config import get_session_ttl_seconds


class SessionStatus(str, Enum):
    """Lifecycle state of a session record.

    Attributes:
        PENDING: Authorization started, tokens not yet issued.
        AUTHENTICATED: Callback completed, tokens and profile stored.
    """

    PENDING = "pending"
    AUTHENTICATED = "authenticated"


class TokenSet(BaseModel):
    """OAuth token set issued by Google for one session.

    ``expiry`` is a naive UTC datetime, matching what google-auth's
    ``Credentials.expiry`` holds.
    """

    access_token: str
    refresh_token: str | None = None
    expiry: datetime | None = None
    scopes: list[str] = Field(default_factory=list)
    token_type: str = "Bearer"
    token_uri: str | None = None

    def merged(self, **changes: Any) -> TokenSet:
        """Return a copy with every non-null change applied.

        Google usually omits the refresh token from refresh responses, so a
        ``None`` value never clears an existing field.
        """
        update = {key: value for key, value in changes.items() if value is not None}
        return self.model_copy(update=update)

    def summary(self) -> dict[str, Any]:
        """Describe the token set without exposing token values."""
        return {
            "access_token": "Received" if self.access_token else "Missing",
            "refresh_token": "Received" if self.refresh_token else "Missing",
            "expiry": self.expiry.isoformat() if self.expiry else None,
            "scopes": list(self.scopes),
            "token_type": self.token_type,
        }


def _default_expiry() -> datetime:
    return datetime.now(UTC) + timedelta(seconds=get_session_ttl_seconds())


class SessionRecord(BaseModel):
    """Server-side state bound to one session cookie.

    Created by the authorization initiator with only ``state`` set, filled
    in once by the callback handler, and afterwards only touched when the
    token set is refreshed.

    Attributes:
        id: Session identifier carried by the cookie.
        state: CSRF state round-tripped through Google.
        tokens: Token set, ``None`` until the callback succeeds.
        profile: Google userinfo attributes, ``None`` until the callback succeeds.
        created_at: Timestamp when the record was created (UTC).
        expires_at: Timestamp after which the record is treated as absent.

    Example:
        >>> record = SessionRecord(state=generate_token())
        >>> record.status
        <SessionStatus.PENDING: 'pending'>
    """

    id: str = Field(
        default_factory=generate_token,
        description="Session identifier carried by the cookie",
    )
    state: str = Field(
        ...,
        description="CSRF state embedded in the consent URL",
    )
    tokens: TokenSet | None = Field(
        default=None,
        description="OAuth token set, populated by the callback",
    )
    profile: dict[str, Any] | None = Field(
        default=None,
        description="Google userinfo attributes (email, name, picture...)",
    )
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        description="Timestamp when the record was created (UTC)",
    )
    expires_at: datetime = Field(
        default_factory=_default_expiry,
        description="Timestamp after which the record is no longer valid",
    )

    @property
    def status(self) -> SessionStatus:
        """Derive the lifecycle state from the stored token set."""
        if self.tokens is None:
            return SessionStatus.PENDING
        return SessionStatus.AUTHENTICATED

    @property
    def is_authenticated(self) -> bool:
        """Check if the OAuth callback completed for this session."""
        return self.status == SessionStatus.AUTHENTICATED

    @property
    def email(self) -> str | None:
        """Email address from the stored profile, if any."""
        if not self.profile:
            return None
        return self.profile.get("email") or self.profile.get("emailAddress")

    @property
    def display_name(self) -> str:
        """Display name from the stored profile, ``User`` when absent."""
        if not self.profile:
            return "User"
        return self.profile.get("name") or "User"

    def is_expired(self, now: datetime | None = None) -> bool:
        """Check if the record has outlived its TTL.

        Args:
            now: Reference time, defaults to the current UTC time.

        Returns:
            True if ``now`` is past ``expires_at``, False otherwise.
        """
        now = now or datetime.now(UTC)
        if self.expires_at.tzinfo is None:
            return now.replace(tzinfo=None) > self.expires_at
        return now > self.expires_at


__all__ = [
    "SessionStatus",
    "TokenSet",
    "SessionRecord",
]
