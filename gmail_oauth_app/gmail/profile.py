"""Gmail mailbox profile lookup."""

from __future__ import annotations

import logging
from typing import Any

from googleapiclient.discovery import Resource

from gmail_oauth_app.gmail.messages import wrap_http_error

logger = logging.getLogger(__name__)


def get_profile(service: Resource) -> dict[str, Any]:
    """Get the mailbox profile (address, message and thread totals)."""
    try:
        profile = service.users().getProfile(userId="me").execute()
        logger.debug("Retrieved mailbox profile for %s", profile.get("emailAddress"))
        return profile
    except Exception as e:
        logger.error("Failed to get mailbox profile: %s", e)
        raise wrap_http_error("get_profile", e) from e
