"""Unguessable tokens for CSRF state and session identifiers."""

from __future__ import annotations

import secrets

from gmail_oauth_app.utils.errors import StateMismatchError

# 32 bytes of entropy, well above the 128-bit floor for session identifiers
TOKEN_BYTES = 32


def generate_token() -> str:
    """Generate a URL-safe random token from the OS CSPRNG."""
    return secrets.token_urlsafe(TOKEN_BYTES)


def verify_state(expected: str, received: str | None) -> None:
    """Check the state returned by Google against the stored one.

    Args:
        expected: State stored in the session record.
        received: ``state`` query parameter of the callback, may be None.

    Raises:
        StateMismatchError: If the values differ or ``received`` is missing.
    """
    if not received or not secrets.compare_digest(
        expected.encode(), received.encode()
    ):
        raise StateMismatchError("State parameter mismatch. Possible CSRF attack.")


__all__ = ["TOKEN_BYTES", "generate_token", "verify_state"]
