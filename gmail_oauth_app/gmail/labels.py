"""Gmail label operations."""

from __future__ import annotations

import logging
from typing import Any

from googleapiclient.discovery import Resource

from gmail_oauth_app.gmail.messages import wrap_http_error

logger = logging.getLogger(__name__)


def list_labels(service: Resource) -> list[dict[str, Any]]:
    """List all labels in the mailbox."""
    try:
        response = service.users().labels().list(userId="me").execute()
        labels = response.get("labels", [])
        logger.debug("Listed %d labels", len(labels))
        return labels
    except Exception as e:
        logger.error("Failed to list labels: %s", e)
        raise wrap_http_error("list_labels", e) from e
