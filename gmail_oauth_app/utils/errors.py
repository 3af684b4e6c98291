"""Errors raised by the OAuth flow, the session layer and the Gmail relay.

Route handlers catch these and turn them into the JSON or HTML error
responses of the endpoint; anything that escapes a route is rendered by the
app-level handler as a 500 page.
"""

from __future__ import annotations


class GmailOAuthAppError(Exception):
    """Root of the application's errors.

    ``message`` is safe to show to the user. ``details`` carries extra
    context for the logs only.
    """

    def __init__(self, message: str, details: dict[str, object] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if not self.details:
            return self.message
        return f"{self.message} | Details: {self.details}"


class AuthenticationError(GmailOAuthAppError):
    """The code exchange, profile lookup or token refresh with Google failed."""


class SessionError(AuthenticationError):
    """No session, an expired one, or one that never finished signing in."""


class StateMismatchError(AuthenticationError):
    """The ``state`` returned to the callback is not the one issued (CSRF)."""


class TokenError(AuthenticationError):
    """The session holds no usable token, e.g. no refresh token was issued."""


class RateLimitError(GmailOAuthAppError):
    """A client spent its request budget for the current window."""

    def __init__(
        self,
        message: str,
        retry_after_seconds: int | None = None,
        details: dict[str, object] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.retry_after_seconds = retry_after_seconds


class GmailAPIError(GmailOAuthAppError):
    """A relayed Gmail call failed.

    Attributes:
        status_code: HTTP status Google answered with, when known.
        error_code: Google's machine-readable reason (``rateLimitExceeded``,
            ``insufficientPermissions``, ...), when the response carried one.
    """

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        error_code: str | None = None,
        details: dict[str, object] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.status_code = status_code
        self.error_code = error_code


class ValidationError(GmailOAuthAppError):
    """Caller input was rejected; ``field`` names the offending input."""

    def __init__(
        self,
        message: str,
        field: str | None = None,
        details: dict[str, object] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.field = field


__all__ = [
    "GmailOAuthAppError",
    "AuthenticationError",
    "SessionError",
    "StateMismatchError",
    "TokenError",
    "RateLimitError",
    "GmailAPIError",
    "ValidationError",
]
