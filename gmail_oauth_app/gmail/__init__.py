"""Gmail API operations module."""

from gmail_oauth_app.gmail.client import GmailRelay, build_gmail_service
from gmail_oauth_app.gmail.labels import list_labels
from gmail_oauth_app.gmail.profile import get_profile
from gmail_oauth_app.gmail.messages import (
    DEFAULT_BODY,
    DEFAULT_SUBJECT,
    build_test_message,
    decode_base64url,
    encode_base64url,
    extract_bodies,
    get_message,
    list_messages,
    send_message,
)

__all__ = [
    "GmailRelay",
    "build_gmail_service",
    "get_profile",
    "list_labels",
    "list_messages",
    "get_message",
    "send_message",
    "build_test_message",
    "encode_base64url",
    "decode_base64url",
    "extract_bodies",
    "DEFAULT_SUBJECT",
    "DEFAULT_BODY",
]
