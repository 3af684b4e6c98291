"""Pydantic schemas for the Gmail OAuth test application."""

from gmail_oauth_app.schemas.requests import (
    HealthResponse,
    SendEmailRequest,
    SendEmailResponse,
)

__all__ = [
    "SendEmailRequest",
    "SendEmailResponse",
    "HealthResponse",
]
