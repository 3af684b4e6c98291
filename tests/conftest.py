"""Pytest configuration and fixtures for Gmail OAuth app tests."""

from __future__ import annotations

import pytest
from httpx import ASGITransport, AsyncClient

from gmail_oauth_app.auth.oauth import OAUTH_SCOPES, OAuthManager
from gmail_oauth_app.auth.session import SessionRecord, TokenSet
from gmail_oauth_app.auth.state import generate_token
from gmail_oauth_app.auth.storage import InMemorySessionStore
from gmail_oauth_app.config import SESSION_COOKIE_NAME
from gmail_oauth_app.middleware.rate_limiter import RateLimiter
from gmail_oauth_app.web.app import create_app


@pytest.fixture(autouse=True)
def oauth_env(monkeypatch):
    """Configure a fake OAuth client and the development posture."""
    monkeypatch.setenv("GOOGLE_CLIENT_ID", "test-client-id.apps.googleusercontent.com")
    monkeypatch.setenv("GOOGLE_CLIENT_SECRET", "test-client-secret")
    monkeypatch.setenv("GOOGLE_REDIRECT_URI", "http://localhost:3000/oauth2callback")
    monkeypatch.delenv("APP_ENV", raising=False)
    monkeypatch.delenv("SESSION_TTL_SECONDS", raising=False)


@pytest.fixture
def store():
    """Fixture providing an empty in-memory session store."""
    return InMemorySessionStore()


@pytest.fixture
def oauth_manager():
    """Fixture providing an OAuth manager configured from the test env."""
    return OAuthManager()


@pytest.fixture
def token_set():
    """Fixture providing a token set as issued after consent."""
    return TokenSet(
        access_token="mock-access-token",
        refresh_token="mock-refresh-token",
        scopes=list(OAUTH_SCOPES),
    )


@pytest.fixture
def google_profile():
    """Fixture providing Google userinfo attributes."""
    return {
        "id": "1234567890",
        "email": "user@example.com",
        "verified_email": True,
        "name": "Test User",
        "picture": "https://example.com/avatar.png",
    }


@pytest.fixture
def pending_record(store):
    """Session record that started the flow but has no tokens yet."""
    record = SessionRecord(state=generate_token())
    store.set(record)
    return record


@pytest.fixture
def authenticated_record(store, token_set, google_profile):
    """Session record that completed the OAuth callback."""
    record = SessionRecord(
        state=generate_token(), tokens=token_set, profile=google_profile
    )
    store.set(record)
    return record


@pytest.fixture
def sample_email():
    """Fixture providing a multipart message as returned with format=full."""
    return {
        "id": "18abc123def",
        "threadId": "18abc123def",
        "labelIds": ["INBOX", "UNREAD"],
        "snippet": "This is a test email snippet...",
        "payload": {
            "mimeType": "multipart/alternative",
            "headers": [
                {"name": "From", "value": "sender@example.com"},
                {"name": "To", "value": "user@example.com"},
                {"name": "Subject", "value": "Test Email Subject"},
            ],
            "body": {"size": 0},
            "parts": [
                {
                    "mimeType": "text/plain",
                    # "This is the email body content."
                    "body": {"data": "VGhpcyBpcyB0aGUgZW1haWwgYm9keSBjb250ZW50Lg"},
                },
                {
                    "mimeType": "text/html",
                    # "<p>Hello</p>"
                    "body": {"data": "PHA-SGVsbG88L3A-"},
                },
            ],
        },
    }


@pytest.fixture
def gmail_build(mocker):
    """Patch Gmail service construction; ``return_value`` is the service."""
    return mocker.patch("gmail_oauth_app.gmail.client.build_gmail_service")


@pytest.fixture
def app(store, oauth_manager):
    """Application wired to the test store and OAuth manager."""
    return create_app(
        store=store,
        oauth=oauth_manager,
        rate_limiter=RateLimiter(max_requests=1000, window_seconds=60),
    )


@pytest.fixture
async def client(app):
    """HTTP client talking to the app in-process, without following redirects."""
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as test_client:
        yield test_client


@pytest.fixture
def login(client):
    """Attach a session record's cookie to the client."""

    def _login(record: SessionRecord) -> None:
        client.cookies.set(SESSION_COOKIE_NAME, record.id)

    return _login
