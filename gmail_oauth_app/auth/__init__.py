"""Authentication module for the Gmail OAuth test application.

This module provides:

- Unguessable CSRF state and session identifiers
- Session records binding a cookie to state, tokens and profile
- A session store interface with an in-memory implementation
- The Google authorization-code flow (consent URL, code exchange, refresh)

Usage:
    >>> from gmail_oauth_app.auth import InMemorySessionStore, OAuthManager
    >>>
    >>> store = InMemorySessionStore()
    >>> record = SessionRecord(state=generate_token())
    >>> store.set(record)
    >>> url = OAuthManager().create_auth_url(record.state)
"""

from gmail_oauth_app.auth.oauth import (
    GOOGLE_AUTH_URI,
    GOOGLE_TOKEN_URI,
    OAUTH_SCOPES,
    OAuthManager,
    token_set_from_credentials,
)
from gmail_oauth_app.auth.session import SessionRecord, SessionStatus, TokenSet
from gmail_oauth_app.auth.state import generate_token, verify_state
from gmail_oauth_app.auth.storage import InMemorySessionStore, SessionStore

__all__ = [
    # OAuth
    "OAuthManager",
    "OAUTH_SCOPES",
    "GOOGLE_AUTH_URI",
    "GOOGLE_TOKEN_URI",
    "token_set_from_credentials",
    # Sessions
    "SessionRecord",
    "SessionStatus",
    "TokenSet",
    "generate_token",
    "verify_state",
    "SessionStore",
    "InMemorySessionStore",
]
