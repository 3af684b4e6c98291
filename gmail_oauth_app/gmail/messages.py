"""Gmail message operations."""

from __future__ import annotations

import base64
import binascii
import logging
from datetime import UTC, datetime
from email.mime.text import MIMEText
from email.utils import formataddr
from typing import Any

from googleapiclient.discovery import Resource
from googleapiclient.errors import HttpError

from gmail_oauth_app.utils.errors import GmailAPIError

logger = logging.getLogger(__name__)

DEFAULT_SUBJECT = "Test Email from Gmail OAuth App"
DEFAULT_BODY = "This is a test email sent from our Gmail OAuth application!"
FOOTER_TEMPLATE = "Sent via Gmail OAuth Test App at {timestamp}"


def _error_reason(e: HttpError) -> str | None:
    # error_details holds the "errors" list of the JSON error body, if any
    details = e.error_details
    if isinstance(details, list) and details and isinstance(details[0], dict):
        return details[0].get("reason")
    return None


def wrap_http_error(action: str, e: Exception) -> GmailAPIError:
    """Wrap a client library error, keeping Google's own message."""
    if isinstance(e, HttpError):
        return GmailAPIError(
            e.reason or str(e),
            status_code=e.resp.status,
            error_code=_error_reason(e),
            details={"action": action},
        )
    return GmailAPIError(str(e), details={"action": action})


def list_messages(
    service: Resource,
    query: str = "",
    max_results: int = 100,
) -> list[dict[str, Any]]:
    """List messages matching a Gmail search query."""
    try:
        messages: list[dict[str, Any]] = []
        request = (
            service.users()
            .messages()
            .list(userId="me", q=query, maxResults=min(max_results, 500))
        )

        while request and len(messages) < max_results:
            response = request.execute()
            messages.extend(response.get("messages", []))
            request = service.users().messages().list_next(request, response)

        logger.debug("Listed %d messages", len(messages))
        return messages[:max_results]

    except Exception as e:
        logger.error("Failed to list messages: %s", e)
        raise wrap_http_error("list_messages", e) from e


def get_message(
    service: Resource, message_id: str, format: str = "full"
) -> dict[str, Any]:
    """Get a specific message by ID."""
    try:
        message = (
            service.users()
            .messages()
            .get(userId="me", id=message_id, format=format)
            .execute()
        )
        logger.debug("Retrieved message %s (format=%s)", message_id, format)
        return message
    except Exception as e:
        logger.error("Failed to get message %s: %s", message_id, e)
        raise wrap_http_error("get_message", e) from e


def send_message(service: Resource, raw: str) -> dict[str, Any]:
    """Send an already encoded RFC 822 message."""
    try:
        sent = (
            service.users().messages().send(userId="me", body={"raw": raw}).execute()
        )
        logger.info("Sent message %s", sent.get("id"))
        return sent
    except Exception as e:
        logger.error("Failed to send message: %s", e)
        raise wrap_http_error("send_message", e) from e


def build_test_message(
    to: str,
    from_email: str,
    from_name: str = "User",
    subject: str | None = None,
    body: str | None = None,
    sent_at: datetime | None = None,
) -> bytes:
    """Build a plain-text RFC 822 message for the send-test-email endpoint.

    Missing subject or body fall back to the defaults. The sender always
    comes from the authenticated profile, never from caller input.

    Args:
        to: Recipient address.
        from_email: Sender address from the signed-in profile.
        from_name: Sender display name from the signed-in profile.
        subject: Subject line, ``DEFAULT_SUBJECT`` when None.
        body: Message text, ``DEFAULT_BODY`` when None.
        sent_at: Timestamp for the footer, defaults to now (UTC).

    Returns:
        The serialized message bytes.
    """
    if subject is None:
        subject = DEFAULT_SUBJECT
    if body is None:
        body = DEFAULT_BODY
    sent_at = sent_at or datetime.now(UTC)

    text = "\n".join(
        [
            body,
            "",
            "---",
            FOOTER_TEMPLATE.format(timestamp=sent_at.isoformat()),
        ]
    )

    message = MIMEText(text, "plain", "utf-8")
    message["From"] = formataddr((from_name, from_email))
    message["To"] = to
    message["Subject"] = subject
    return message.as_bytes()


def encode_base64url(data: bytes) -> str:
    """Encode bytes as unpadded base64url, the form Gmail's ``raw`` expects."""
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def decode_base64url(data: str | None) -> str:
    """Decode base64url body data to text.

    Args:
        data: Base64url string as found in ``payload.body.data``.

    Returns:
        The UTF-8 decoded text, or an empty string if ``data`` is empty
        or cannot be decoded.
    """
    if not data:
        return ""

    padded = data + "=" * (-len(data) % 4)
    try:
        return base64.urlsafe_b64decode(padded).decode("utf-8", errors="replace")
    except (binascii.Error, ValueError) as e:
        logger.warning("Failed to decode base64 body data: %s", e)
        return ""


def extract_bodies(payload: dict[str, Any] | None) -> tuple[str, str]:
    """Extract the plain-text and HTML bodies from a message payload.

    Single-part payloads are answered directly. Otherwise the part tree is
    walked depth-first, children before their parent, and the first
    ``text/plain`` and first ``text/html`` part with data win.

    Args:
        payload: The ``payload`` of a message fetched with ``format=full``.

    Returns:
        Tuple of (text, html); either may be empty.
    """
    if not payload:
        return "", ""

    data = payload.get("body", {}).get("data")
    if data:
        mime_type = payload.get("mimeType") or ""
        if "text/plain" in mime_type:
            return decode_base64url(data), ""
        if "text/html" in mime_type:
            return "", decode_base64url(data)

    found = {"text": "", "html": ""}

    def walk(parts: list[dict[str, Any]]) -> None:
        for part in parts:
            if part.get("parts"):
                walk(part["parts"])

            part_data = part.get("body", {}).get("data")
            if not part_data:
                continue
            mime_type = part.get("mimeType") or ""
            if not found["text"] and "text/plain" in mime_type:
                found["text"] = decode_base64url(part_data)
            if not found["html"] and "text/html" in mime_type:
                found["html"] = decode_base64url(part_data)

    walk(payload.get("parts") or [])
    return found["text"], found["html"]
