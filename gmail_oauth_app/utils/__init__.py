"""Utility functions and helpers for the Gmail OAuth test application.

This module provides the shared exception hierarchy.
"""

from gmail_oauth_app.utils.errors import (
    AuthenticationError,
    GmailAPIError,
    GmailOAuthAppError,
    RateLimitError,
    SessionError,
    StateMismatchError,
    TokenError,
    ValidationError,
)

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
