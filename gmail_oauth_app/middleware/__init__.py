"""Middleware module for the Gmail OAuth test application."""

from gmail_oauth_app.middleware.audit_logger import AuditEntry, AuditLogger, audit_logger
from gmail_oauth_app.middleware.rate_limiter import RateLimiter, RateLimitMiddleware
from gmail_oauth_app.middleware.security_headers import SecurityHeadersMiddleware
from gmail_oauth_app.middleware.validator import (
    validate_email,
    validate_header_text,
    validate_message_id,
)

__all__ = [
    "RateLimiter",
    "RateLimitMiddleware",
    "SecurityHeadersMiddleware",
    "AuditLogger",
    "AuditEntry",
    "audit_logger",
    "validate_email",
    "validate_message_id",
    "validate_header_text",
]
