"""Authenticated relay between session records and the Gmail API.

Every protected operation goes through ``GmailRelay.execute``: it builds
credentials from the session's stored token set, runs the operation against
a fresh Gmail service and then writes back whatever token set the client
library ended up using. google-auth refreshes an expired access token on its
own, so without the write-back the session would keep a stale token.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Any, TypeVar

from google.oauth2.credentials import Credentials
from googleapiclient.discovery import Resource, build

from gmail_oauth_app.auth.oauth import OAuthManager, token_set_from_credentials
from gmail_oauth_app.auth.session import SessionRecord
from gmail_oauth_app.auth.storage import SessionStore
from gmail_oauth_app.middleware.audit_logger import audit_logger
from gmail_oauth_app.utils.errors import SessionError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def build_gmail_service(credentials: Credentials) -> Resource:
    """Build a Gmail v1 service bound to the given credentials."""
    return build("gmail", "v1", credentials=credentials, cache_discovery=False)


class GmailRelay:
    """Runs Gmail operations on behalf of an authenticated session.

    Attributes:
        _store: Session store the token sets are read from and written to.
        _oauth: OAuth manager used to build and refresh credentials.

    Example:
        >>> relay = GmailRelay(store, oauth_manager)
        >>> record = relay.load(session_id)
        >>> labels = relay.execute(record, "list_labels", {}, list_labels)
    """

    def __init__(self, store: SessionStore, oauth: OAuthManager) -> None:
        self._store = store
        self._oauth = oauth

    def load(self, session_id: str | None) -> SessionRecord | None:
        """Load an authenticated session record.

        Args:
            session_id: Session identifier from the cookie, may be None.

        Returns:
            The record if it exists and holds a token set, None otherwise.
        """
        if not session_id:
            return None
        record = self._store.get(session_id)
        if record is None or not record.is_authenticated:
            return None
        return record

    def execute(
        self,
        record: SessionRecord,
        operation_name: str,
        params: dict[str, Any],
        operation: Callable[[Resource], T],
    ) -> T:
        """Execute a Gmail operation with the session's credentials.

        The token set actually used is written back to the store after the
        call, whether it succeeded or not.

        Args:
            record: Authenticated session record.
            operation_name: Name of the operation (for audit logging).
            params: Operation parameters (for audit logging).
            operation: Callable receiving the Gmail service.

        Returns:
            Result of the operation.

        Raises:
            SessionError: If the record holds no token set.
            GmailAPIError: If the operation fails.
        """
        if record.tokens is None:
            raise SessionError("Not authenticated")

        credentials = self._oauth.get_credentials(record.tokens)
        start_time = time.perf_counter()
        result_status = "success"
        error_message: str | None = None

        try:
            service = build_gmail_service(credentials)
            return operation(service)

        except Exception as e:
            result_status = "error"
            error_message = str(e)
            raise
        finally:
            self._write_back(record, credentials)
            duration_ms = (time.perf_counter() - start_time) * 1000
            audit_logger.log_operation(
                operation=operation_name,
                parameters=params,
                session_id=record.id,
                user=record.email,
                result_status=result_status,
                error_message=error_message,
                duration_ms=duration_ms,
            )

    def refresh(self, record: SessionRecord) -> SessionRecord:
        """Refresh the session's access token and store the result.

        Args:
            record: Session record holding a refresh token.

        Returns:
            The updated record.

        Raises:
            TokenError: If the record has no refresh token.
            AuthenticationError: If Google rejects the refresh.
            SessionError: If the session ended while refreshing.
        """
        if record.tokens is None:
            raise SessionError("Not authenticated")

        record.tokens = self._oauth.refresh_tokens(record.tokens)
        if not self._store.update(record):
            raise SessionError("Session ended during token refresh")
        logger.info("Stored refreshed tokens for session %s...", record.id[:8])
        return record

    def _write_back(self, record: SessionRecord, credentials: Credentials) -> None:
        """Persist the token set held by ``credentials`` if it changed."""
        if record.tokens is None:
            return

        if (
            credentials.token == record.tokens.access_token
            and credentials.expiry == record.tokens.expiry
        ):
            return

        record.tokens = token_set_from_credentials(credentials, fallback=record.tokens)
        if not self._store.update(record):
            logger.info(
                "Session %s... ended during the call; refreshed token dropped",
                record.id[:8],
            )
            return
        logger.info(
            "Persisted silently refreshed token for session %s...", record.id[:8]
        )
