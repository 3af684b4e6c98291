"""Input validation utilities."""

from __future__ import annotations

import logging
import re

from gmail_oauth_app.utils.errors import ValidationError

logger = logging.getLogger(__name__)

# Regex patterns
EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
MESSAGE_ID_PATTERN = re.compile(r"^[a-zA-Z0-9]+$")


def validate_email(email: str | None) -> str:
    """Validate email address format.

    Args:
        email: Email address to validate.

    Returns:
        Validated email address (stripped).

    Raises:
        ValidationError: If email format is invalid.
    """
    email = (email or "").strip()
    if not email:
        raise ValidationError("Recipient address is required", field="to")

    if "\r" in email or "\n" in email:
        raise ValidationError("Email address contains line breaks", field="to")

    if len(email) > 254:
        raise ValidationError("Email address too long (max 254 characters)", field="to")

    if not EMAIL_PATTERN.match(email):
        raise ValidationError(f"Invalid email format: {email}", field="to")

    return email


def validate_message_id(message_id: str) -> str:
    """Validate Gmail message ID format.

    Args:
        message_id: Message ID to validate.

    Returns:
        Validated message ID (stripped).

    Raises:
        ValidationError: If message ID format is invalid.
    """
    message_id = message_id.strip()
    if not message_id:
        raise ValidationError("Message ID cannot be empty", field="id")

    if not MESSAGE_ID_PATTERN.match(message_id):
        raise ValidationError(f"Invalid message ID format: {message_id}", field="id")

    return message_id


def validate_header_text(value: str, field: str) -> str:
    """Reject header values that could inject extra headers.

    Args:
        value: Header value supplied by the caller.
        field: Name of the field, for the error.

    Returns:
        The unchanged value.

    Raises:
        ValidationError: If the value contains CR or LF.
    """
    if "\r" in value or "\n" in value:
        raise ValidationError(f"{field} must not contain line breaks", field=field)
    return value
