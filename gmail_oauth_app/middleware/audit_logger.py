"""Audit logging for authentication events and relayed Gmail calls."""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, Field

from gmail_oauth_app.config import is_audit_enabled

logger = logging.getLogger(__name__)


class AuditEntry(BaseModel):
    """Model for an audit log entry."""

    timestamp: str = Field(
        default_factory=lambda: datetime.now(UTC).isoformat(),
        description="ISO format timestamp",
    )
    session: str | None = Field(
        default=None,
        description="Shortened session identifier",
    )
    user: str | None = Field(default=None, description="Signed-in email, if known")
    event: str = Field(..., description="Auth event or Gmail operation name")
    parameters: dict[str, Any] = Field(
        default_factory=dict,
        description="Event parameters (sensitive data redacted)",
    )
    result_status: str | None = Field(
        default=None,
        description="Result status (success/error)",
    )
    error_message: str | None = Field(
        default=None,
        description="Error message if failed",
    )
    duration_ms: float | None = Field(
        default=None,
        description="Execution duration in milliseconds",
    )


def shorten_session_id(session_id: str | None) -> str | None:
    """Keep only a prefix of a session id, enough to correlate log lines."""
    if not session_id:
        return None
    return session_id[:8] + "..."


class AuditLogger:
    """Audit logger that writes JSON lines to stderr.

    Each entry is a single ``{"audit": {...}}`` line so it can be grepped
    out of the regular application log.
    """

    SENSITIVE_KEYS = {
        "body",
        "code",
        "state",
        "token",
        "secret",
        "access_token",
        "refresh_token",
        "client_secret",
        "authorization",
        "raw",
    }

    def __init__(self, enabled: bool = True):
        """Initialize audit logger.

        Args:
            enabled: Whether audit logging is enabled.
        """
        self._enabled = enabled
        logger.info("AuditLogger initialized (enabled=%s)", enabled)

    def _redact_sensitive(self, params: dict[str, Any]) -> dict[str, Any]:
        """Redact sensitive values from parameters."""
        redacted: dict[str, Any] = {}
        for key, value in params.items():
            if key.lower() in self.SENSITIVE_KEYS:
                redacted[key] = "[REDACTED]"
            elif isinstance(value, dict):
                redacted[key] = self._redact_sensitive(value)
            else:
                redacted[key] = value
        return redacted

    def log(self, entry: AuditEntry) -> None:
        """Write audit entry to stderr.

        Args:
            entry: The audit entry to log.
        """
        if not self._enabled:
            return

        try:
            line = json.dumps({"audit": entry.model_dump()}, default=str)
            print(line, file=sys.stderr, flush=True)
        except Exception as e:
            logger.error("Failed to write audit log: %s", e)

    def log_operation(
        self,
        operation: str,
        parameters: dict[str, Any],
        session_id: str | None = None,
        user: str | None = None,
        result_status: str | None = None,
        error_message: str | None = None,
        duration_ms: float | None = None,
    ) -> None:
        """Log a relayed Gmail API operation.

        Args:
            operation: Name of the operation (e.g. ``send_message``).
            parameters: Operation parameters (will be redacted).
            session_id: Session the call was made for.
            user: Signed-in email address.
            result_status: "success" or "error".
            error_message: Error message if failed.
            duration_ms: Execution time in milliseconds.
        """
        entry = AuditEntry(
            session=shorten_session_id(session_id),
            user=user,
            event=operation,
            parameters=self._redact_sensitive(parameters),
            result_status=result_status,
            error_message=error_message,
            duration_ms=duration_ms,
        )
        self.log(entry)

    def log_auth_event(
        self,
        event: str,
        session_id: str | None = None,
        user: str | None = None,
        success: bool = True,
        details: dict[str, Any] | None = None,
    ) -> None:
        """Log an authentication event.

        Args:
            event: Event type (login_started, login, csrf_rejected, logout...)
            session_id: Session the event belongs to.
            user: Signed-in email address, if known.
            success: Whether the event succeeded.
            details: Additional event details.
        """
        entry = AuditEntry(
            session=shorten_session_id(session_id),
            user=user,
            event=event,
            parameters=self._redact_sensitive(details or {}),
            result_status="success" if success else "error",
        )
        self.log(entry)


# Global singleton
audit_logger = AuditLogger(enabled=is_audit_enabled())
