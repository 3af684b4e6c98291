"""Google OAuth 2.0 authorization-code flow for a server-side web app.

This module builds the consent URL, exchanges the authorization code for a
token set, looks up the signed-in user's profile and refreshes access
tokens. It never stores anything itself: callers persist the returned
``TokenSet`` in the session store.

Security considerations:
- Client credentials come from environment variables only
- Offline access is always requested so Google issues a refresh token
- ``prompt=consent`` forces Google to re-issue the refresh token on every login
"""

from __future__ import annotations

import logging
import os
from urllib.parse import urlencode

from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import Flow
from googleapiclient.discovery import build

from gmail_oauth_app.auth.session import TokenSet
from gmail_oauth_app.config import get_port
from gmail_oauth_app.utils.errors import AuthenticationError, TokenError

logger = logging.getLogger(__name__)

OAUTH_SCOPES = [
    "https://www.googleapis.com/auth/gmail.readonly",
    "https://www.googleapis.com/auth/gmail.send",
    "https://www.googleapis.com/auth/gmail.labels",
    "profile",
    "email",
]

# Google OAuth endpoints
GOOGLE_AUTH_URI = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"


class OAuthManager:
    """Runs the Google authorization-code flow for the web application.

    Attributes:
        _client_id: Google OAuth client ID from environment.
        _client_secret: Google OAuth client secret from environment.
        _redirect_uri: Callback URI registered for the web client.

    Example:
        >>> manager = OAuthManager()
        >>> url = manager.create_auth_url(state="abc123")
        >>> tokens = manager.exchange_code(code_from_callback)
        >>> profile = manager.fetch_profile(tokens)
    """

    def __init__(self) -> None:
        """Initialize OAuth manager with credentials from environment."""
        self._client_id = os.getenv("GOOGLE_CLIENT_ID")
        self._client_secret = os.getenv("GOOGLE_CLIENT_SECRET")
        self._redirect_uri = os.getenv(
            "GOOGLE_REDIRECT_URI",
            f"http://localhost:{get_port()}/oauth2callback",
        )

        if not self.is_configured:
            logger.warning(
                "OAuth credentials not configured. Set GOOGLE_CLIENT_ID and "
                "GOOGLE_CLIENT_SECRET environment variables."
            )

    @property
    def is_configured(self) -> bool:
        """Check if both client ID and secret are set."""
        return bool(self._client_id and self._client_secret)

    @property
    def redirect_uri(self) -> str:
        """Callback URI sent to Google with every request."""
        return self._redirect_uri

    def _require_configured(self) -> None:
        if not self.is_configured:
            raise AuthenticationError(
                "OAuth not configured",
                details={
                    "hint": "Set GOOGLE_CLIENT_ID and GOOGLE_CLIENT_SECRET "
                    "environment variables"
                },
            )

    def _get_client_config(self) -> dict[str, dict[str, object]]:
        """Build OAuth client configuration in google-auth-oauthlib format."""
        return {
            "web": {
                "client_id": self._client_id,
                "client_secret": self._client_secret,
                "auth_uri": GOOGLE_AUTH_URI,
                "token_uri": GOOGLE_TOKEN_URI,
                "redirect_uris": [self.redirect_uri],
            }
        }

    def create_auth_url(self, state: str) -> str:
        """Create the Google consent URL for one authorization attempt.

        Args:
            state: CSRF state stored in the caller's session record.

        Returns:
            The full authorization URL embedding ``state``.

        Raises:
            AuthenticationError: If OAuth is not configured.
        """
        self._require_configured()

        params = {
            "client_id": self._client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": "code",
            "scope": " ".join(OAUTH_SCOPES),
            "state": state,
            "access_type": "offline",
            "prompt": "consent",
        }

        auth_url = f"{GOOGLE_AUTH_URI}?{urlencode(params)}"
        logger.debug("Created auth URL with state: %s", state[:8] + "...")
        return auth_url

    def exchange_code(self, code: str) -> TokenSet:
        """Exchange an authorization code for a token set.

        Args:
            code: Authorization code from the OAuth callback.

        Returns:
            The issued token set.

        Raises:
            AuthenticationError: If OAuth is not configured, no code was
                given, or Google rejects the exchange.
        """
        self._require_configured()

        if not code:
            raise AuthenticationError("No authorization code received")

        flow = Flow.from_client_config(
            self._get_client_config(),
            scopes=OAUTH_SCOPES,
            redirect_uri=self.redirect_uri,
        )

        try:
            flow.fetch_token(code=code)
            credentials = flow.credentials
            token_type = flow.oauth2session.token.get("token_type", "Bearer")
        except Exception as e:
            logger.error("Failed to exchange authorization code: %s", e)
            raise AuthenticationError(
                f"Failed to exchange authorization code: {e}",
                details={"error_type": type(e).__name__},
            ) from e

        tokens = token_set_from_credentials(credentials)
        tokens = tokens.merged(token_type=token_type)
        logger.info("Successfully exchanged authorization code for tokens")
        logger.info("Access Token: %s", "Received" if tokens.access_token else "Missing")
        logger.info(
            "Refresh Token: %s", "Received" if tokens.refresh_token else "Missing"
        )
        return tokens

    def get_credentials(self, tokens: TokenSet) -> Credentials:
        """Build a Credentials object from a stored token set.

        Client ID and secret are included so the Google client libraries
        can refresh an expired access token on their own.

        Args:
            tokens: Token set from the session record.

        Returns:
            Credentials for authenticating API requests.
        """
        return Credentials(  # type: ignore[no-untyped-call]
            token=tokens.access_token,
            refresh_token=tokens.refresh_token,
            token_uri=tokens.token_uri or GOOGLE_TOKEN_URI,
            client_id=self._client_id,
            client_secret=self._client_secret,
            scopes=tokens.scopes or OAUTH_SCOPES,
            expiry=tokens.expiry,
        )

    def fetch_profile(self, tokens: TokenSet) -> dict[str, object]:
        """Fetch the signed-in user's Google profile.

        Args:
            tokens: Freshly issued token set.

        Returns:
            Userinfo attributes (``email``, ``name``, ``picture``, ...).

        Raises:
            AuthenticationError: If the userinfo call fails.
        """
        try:
            service = build(
                "oauth2", "v2", credentials=self.get_credentials(tokens), cache_discovery=False
            )
            profile: dict[str, object] = service.userinfo().get().execute()
        except Exception as e:
            logger.error("Failed to fetch user profile: %s", e)
            raise AuthenticationError(
                f"Failed to fetch user profile: {e}",
                details={"error_type": type(e).__name__},
            ) from e

        logger.info("User authenticated: %s", profile.get("email"))
        return profile

    def refresh_tokens(self, tokens: TokenSet) -> TokenSet:
        """Mint a new access token from the stored refresh token.

        Args:
            tokens: Existing token set containing a refresh token.

        Returns:
            The token set with the new access token and expiry merged in.

        Raises:
            TokenError: If no refresh token is available.
            AuthenticationError: If Google rejects the refresh.
        """
        if not tokens.refresh_token:
            raise TokenError(
                "No refresh token available",
                details={"hint": "User must re-authenticate to obtain a refresh token"},
            )

        credentials = self.get_credentials(tokens)

        try:
            credentials.refresh(Request())
        except Exception as e:
            logger.error("Failed to refresh token: %s", e)
            raise AuthenticationError(
                f"Failed to refresh token: {e}",
                details={"error_type": type(e).__name__},
            ) from e

        logger.info("Successfully refreshed access token")
        return token_set_from_credentials(credentials, fallback=tokens)


def token_set_from_credentials(
    credentials: Credentials, fallback: TokenSet | None = None
) -> TokenSet:
    """Snapshot the token set a Credentials object currently holds.

    Args:
        credentials: Credentials, possibly refreshed by the client library.
        fallback: Previously stored token set whose fields fill any gaps.

    Returns:
        A token set reflecting the credentials actually in use.
    """
    scopes = list(credentials.scopes) if credentials.scopes else None
    if fallback is None:
        return TokenSet(
            access_token=credentials.token,
            refresh_token=credentials.refresh_token,
            expiry=credentials.expiry,
            scopes=scopes or OAUTH_SCOPES,
            token_uri=credentials.token_uri,
        )

    return fallback.merged(
        access_token=credentials.token,
        refresh_token=credentials.refresh_token,
        expiry=credentials.expiry,
        scopes=scopes,
    )


__all__ = [
    "OAuthManager",
    "OAUTH_SCOPES",
    "GOOGLE_AUTH_URI",
    "GOOGLE_TOKEN_URI",
    "token_set_from_credentials",
]
