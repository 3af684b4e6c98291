"""HTTP routes: the OAuth flow, the dashboard and the JSON relay endpoints.

Handlers that call Google are plain ``def`` functions so FastAPI runs them
in its threadpool; the Google client libraries are blocking.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import (
    HTMLResponse,
    JSONResponse,
    PlainTextResponse,
    RedirectResponse,
)
from googleapiclient.discovery import Resource
from starlette.responses import Response

from gmail_oauth_app.auth.oauth import OAuthManager
from gmail_oauth_app.auth.session import SessionRecord
from gmail_oauth_app.auth.state import generate_token, verify_state
from gmail_oauth_app.auth.storage import SessionStore
from gmail_oauth_app.config import get_environment
from gmail_oauth_app.gmail.client import GmailRelay
from gmail_oauth_app.gmail.labels import list_labels
from gmail_oauth_app.gmail.profile import get_profile
from gmail_oauth_app.gmail.messages import (
    build_test_message,
    encode_base64url,
    extract_bodies,
    get_message,
    list_messages,
    send_message,
)
from gmail_oauth_app.middleware.audit_logger import audit_logger
from gmail_oauth_app.middleware.rate_limiter import RateLimiter
from gmail_oauth_app.middleware.validator import (
    validate_email,
    validate_header_text,
    validate_message_id,
)
from gmail_oauth_app.schemas.requests import (
    HealthResponse,
    SendEmailRequest,
    SendEmailResponse,
)
from gmail_oauth_app.utils.errors import (
    AuthenticationError,
    GmailAPIError,
    StateMismatchError,
    ValidationError,
)
from gmail_oauth_app.web.dependencies import (
    clear_session_cookie,
    get_oauth,
    get_rate_limiter,
    get_relay,
    get_session_id,
    get_store,
    set_session_cookie,
)
from gmail_oauth_app.web.views import APP_TITLE, render_error, templates

logger = logging.getLogger(__name__)

router = APIRouter()

DASHBOARD_MESSAGE_COUNT = 15
DASHBOARD_QUERY = "in:inbox"

NOT_AUTHENTICATED = "Not authenticated"
INVALID_SESSION = "Invalid session. Please start over."


@router.get("/", response_class=HTMLResponse)
async def index(request: Request, store: SessionStore = Depends(get_store)):
    """Landing page with a sign-in link or the signed-in address."""
    session_id = get_session_id(request)
    record = store.get(session_id) if session_id else None
    authenticated = record is not None and record.is_authenticated

    return templates.TemplateResponse(
        request,
        "index.html",
        {
            "title": APP_TITLE,
            "authenticated": authenticated,
            "user_email": record.email if authenticated else None,
        },
    )


@router.get("/auth")
def start_authorization(
    request: Request,
    store: SessionStore = Depends(get_store),
    oauth: OAuthManager = Depends(get_oauth),
    rate_limiter: RateLimiter = Depends(get_rate_limiter),
):
    """Begin the authorization code flow with a fresh session."""
    store.cleanup_expired()
    rate_limiter.cleanup_stale()

    record = SessionRecord(state=generate_token())
    auth_url = oauth.create_auth_url(record.state)
    store.set(record)

    logger.info("Starting OAuth flow for session %s...", record.id[:8])
    audit_logger.log_auth_event("login_started", session_id=record.id)

    response = RedirectResponse(auth_url, status_code=302)
    set_session_cookie(response, record.id)
    return response


@router.get("/oauth2callback")
def oauth2callback(
    request: Request,
    code: str | None = None,
    state: str | None = None,
    error: str | None = None,
    store: SessionStore = Depends(get_store),
    oauth: OAuthManager = Depends(get_oauth),
):
    """Complete the flow: verify state, exchange the code, load the profile."""
    session_id = get_session_id(request)
    record = store.get(session_id) if session_id else None

    if record is None:
        logger.warning("OAuth callback without a valid session")
        audit_logger.log_auth_event(
            "callback_rejected",
            session_id=session_id,
            success=False,
            details={"reason": "invalid_session"},
        )
        return PlainTextResponse(INVALID_SESSION, status_code=400)

    try:
        verify_state(record.state, state)
    except StateMismatchError as e:
        logger.warning(
            "State mismatch for session %s... Possible CSRF attack", record.id[:8]
        )
        audit_logger.log_auth_event(
            "csrf_rejected",
            session_id=record.id,
            success=False,
            details={"reason": "state_mismatch"},
        )
        return PlainTextResponse(e.message, status_code=400)

    if error:
        logger.warning("Authorization denied by Google: %s", error)
        audit_logger.log_auth_event(
            "login_failed",
            session_id=record.id,
            success=False,
            details={"provider_error": error},
        )
        return render_error(
            request,
            "Authorization Denied",
            "Google did not grant access. Please try again.",
            status_code=400,
        )

    try:
        tokens = oauth.exchange_code(code or "")
        profile = oauth.fetch_profile(tokens)
    except AuthenticationError as e:
        logger.error("Token exchange error: %s", e)
        audit_logger.log_auth_event(
            "login_failed",
            session_id=record.id,
            success=False,
            details={"error": e.message},
        )
        return render_error(
            request,
            "Authentication Failed",
            "Failed to authenticate with Google. Please try again.",
            status_code=500,
        )

    record.tokens = tokens
    record.profile = profile
    if not store.update(record):
        logger.warning("Session %s... ended during the callback", record.id[:8])
        return PlainTextResponse(INVALID_SESSION, status_code=400)

    logger.info("Authentication successful for session %s...", record.id[:8])
    logger.info("Tokens received: %s", tokens.summary())
    audit_logger.log_auth_event("login", session_id=record.id, user=record.email)

    return RedirectResponse("/dashboard", status_code=302)


@router.get("/dashboard", response_class=HTMLResponse)
def dashboard(request: Request, relay: GmailRelay = Depends(get_relay)):
    """Show profile, recent inbox messages, labels and token metadata."""
    record = relay.load(get_session_id(request))
    if record is None:
        return RedirectResponse("/auth", status_code=302)

    def load_dashboard(service: Resource) -> dict[str, Any]:
        return {
            "profile": get_profile(service),
            "messages": list_messages(
                service, query=DASHBOARD_QUERY, max_results=DASHBOARD_MESSAGE_COUNT
            ),
            "labels": list_labels(service),
        }

    try:
        data = relay.execute(
            record,
            "load_dashboard",
            {"query": DASHBOARD_QUERY, "max_results": DASHBOARD_MESSAGE_COUNT},
            load_dashboard,
        )
    except Exception as e:
        logger.exception("Dashboard error: %s", e)
        return render_error(
            request,
            "Dashboard Error",
            "Failed to load dashboard data. Please try reauthenticating.",
            status_code=500,
        )

    return templates.TemplateResponse(
        request,
        "dashboard.html",
        {
            "title": APP_TITLE,
            "profile": data["profile"],
            "messages": data["messages"],
            "labels": data["labels"],
            "tokens": record.tokens.summary(),
            "user_profile": record.profile or {},
        },
    )


@router.post("/send-test-email")
def send_test_email(
    request: Request,
    payload: SendEmailRequest | None = None,
    relay: GmailRelay = Depends(get_relay),
):
    """Send a plain-text test message from the signed-in account."""
    record = relay.load(get_session_id(request))
    if record is None:
        return JSONResponse(
            {"success": False, "error": NOT_AUTHENTICATED}, status_code=401
        )

    payload = payload or SendEmailRequest()
    try:
        to = validate_email(payload.to)
        subject = (
            validate_header_text(payload.subject, "subject")
            if payload.subject is not None
            else None
        )
    except ValidationError as e:
        return JSONResponse({"success": False, "error": e.message}, status_code=400)

    raw = encode_base64url(
        build_test_message(
            to=to,
            from_email=record.email or "",
            from_name=record.display_name,
            subject=subject,
            body=payload.body,
        )
    )

    try:
        sent = relay.execute(
            record,
            "send_message",
            {"to": to, "subject": subject, "body": payload.body},
            lambda service: send_message(service, raw),
        )
    except GmailAPIError as e:
        logger.error("Send email error (%s): %s", e.error_code or e.status_code, e)
        return JSONResponse({"success": False, "error": e.message}, status_code=500)

    result = SendEmailResponse(
        message_id=sent.get("id"), thread_id=sent.get("threadId")
    )
    return JSONResponse(result.model_dump(by_alias=True))


@router.get("/api/emails/{message_id}")
def get_email(
    request: Request,
    message_id: str,
    message_format: str = Query("", alias="format"),
    relay: GmailRelay = Depends(get_relay),
):
    """Fetch one message, with decoded bodies when ``format=full``."""
    record = relay.load(get_session_id(request))
    if record is None:
        return JSONResponse({"error": NOT_AUTHENTICATED}, status_code=401)

    try:
        message_id = validate_message_id(message_id)
    except ValidationError as e:
        return JSONResponse({"error": e.message}, status_code=400)

    want_full = message_format.lower() == "full"
    gmail_format = "full" if want_full else "metadata"

    try:
        message = relay.execute(
            record,
            "get_message",
            {"id": message_id, "format": gmail_format},
            lambda service: get_message(service, message_id, format=gmail_format),
        )
    except GmailAPIError as e:
        logger.error("Email fetch error (%s): %s", e.error_code or e.status_code, e)
        return JSONResponse({"error": e.message}, status_code=500)

    if not want_full:
        return JSONResponse(message)

    text, html = extract_bodies(message.get("payload"))
    return JSONResponse(
        {**message, "decodedBodyText": text, "decodedBodyHtml": html}
    )


@router.post("/refresh-tokens")
def refresh_tokens(request: Request, relay: GmailRelay = Depends(get_relay)):
    """Force a refresh of the session's access token."""
    record = relay.load(get_session_id(request))
    if record is None or not record.tokens.refresh_token:
        return JSONResponse({"error": "No refresh token available"}, status_code=401)

    try:
        record = relay.refresh(record)
    except AuthenticationError as e:
        logger.error("Token refresh error: %s", e)
        audit_logger.log_auth_event(
            "token_refresh",
            session_id=record.id,
            user=record.email,
            success=False,
            details={"error": e.message},
        )
        return JSONResponse(
            {"success": False, "error": "Failed to refresh tokens"}, status_code=500
        )

    audit_logger.log_auth_event(
        "token_refresh", session_id=record.id, user=record.email
    )
    return JSONResponse({"success": True, "message": "Tokens refreshed successfully"})


@router.get("/logout")
async def logout(request: Request, store: SessionStore = Depends(get_store)):
    """Destroy the session and clear the cookie."""
    session_id = get_session_id(request)
    if session_id and store.delete(session_id):
        audit_logger.log_auth_event("logout", session_id=session_id)

    response: Response = RedirectResponse("/", status_code=302)
    clear_session_cookie(response)
    return response


@router.get("/health", response_model=HealthResponse)
async def health() -> HealthResponse:
    """Liveness check."""
    return HealthResponse(
        timestamp=datetime.now(UTC).isoformat(),
        environment=get_environment(),
    )
