"""Pydantic request and response models for the JSON endpoints."""

from pydantic import BaseModel, ConfigDict, Field


class SendEmailRequest(BaseModel):
    """Body of ``POST /send-test-email``.

    ``subject`` and ``body`` fall back to the defaults when omitted or null.
    The sender is never taken from the request.
    """

    to: str = Field(
        default="",
        description="Recipient email address",
    )
    subject: str | None = Field(
        None,
        description="Subject line (default: 'Test Email from Gmail OAuth App')",
    )
    body: str | None = Field(
        None,
        description="Plain-text message body",
    )


class SendEmailResponse(BaseModel):
    """Successful send result, serialized with the camelCase field names."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str = "Test email sent successfully!"
    message_id: str | None = Field(None, alias="messageId")
    thread_id: str | None = Field(None, alias="threadId")


class HealthResponse(BaseModel):
    """Body of ``GET /health``."""

    status: str = "OK"
    timestamp: str
    environment: str
