"""FastAPI application factory."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.middleware.gzip import GZipMiddleware
from starlette.responses import Response

from gmail_oauth_app import __version__
from gmail_oauth_app.auth.oauth import OAuthManager
from gmail_oauth_app.auth.storage import InMemorySessionStore, SessionStore
from gmail_oauth_app.config import get_environment, is_production
from gmail_oauth_app.gmail.client import GmailRelay
from gmail_oauth_app.middleware.rate_limiter import RateLimiter, RateLimitMiddleware
from gmail_oauth_app.middleware.security_headers import SecurityHeadersMiddleware
from gmail_oauth_app.utils.errors import GmailOAuthAppError
from gmail_oauth_app.web.dependencies import get_session_id
from gmail_oauth_app.web.routes import NOT_AUTHENTICATED, router
from gmail_oauth_app.web.views import APP_TITLE, STATIC_DIR, render_error

logger = logging.getLogger(__name__)

GENERIC_ERROR = "Something went wrong. Please try again later."
INVALID_JSON = "Request body must be valid JSON"


async def app_error_handler(request: Request, exc: GmailOAuthAppError) -> Response:
    """Render application errors that escaped a route as a 500 page."""
    logger.error("Unhandled application error on %s: %s", request.url.path, exc)
    message = GENERIC_ERROR if is_production() else exc.message
    return render_error(request, "Server Error", message, status_code=500)


async def body_validation_error_handler(
    request: Request, exc: RequestValidationError
) -> Response:
    """Answer malformed JSON bodies in the endpoints' own error shape.

    Only POST routes take a body; anything else keeps FastAPI's default.
    """
    if request.method != "POST":
        return await request_validation_exception_handler(request, exc)

    if request.app.state.gmail_relay.load(get_session_id(request)) is None:
        return JSONResponse(
            {"success": False, "error": NOT_AUTHENTICATED}, status_code=401
        )

    return JSONResponse(
        {"success": False, "error": describe_validation_error(exc)}, status_code=400
    )


def describe_validation_error(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors or errors[0].get("type") == "json_invalid":
        return INVALID_JSON

    first = errors[0]
    fields = [str(part) for part in first.get("loc", ()) if part != "body"]
    if not fields:
        return f"Invalid request body: {first.get('msg')}"
    return f"Invalid {'.'.join(fields)}: {first.get('msg')}"


async def unhandled_error_handler(request: Request, exc: Exception) -> Response:
    """Last-resort handler; hides exception text in production."""
    logger.exception("Unhandled error on %s", request.url.path, exc_info=exc)
    message = GENERIC_ERROR if is_production() else str(exc)
    return render_error(request, "Server Error", message, status_code=500)


def create_app(
    store: SessionStore | None = None,
    oauth: OAuthManager | None = None,
    rate_limiter: RateLimiter | None = None,
) -> FastAPI:
    """Create the web application.

    Args:
        store: Session store, an ``InMemorySessionStore`` by default.
        oauth: OAuth manager, configured from the environment by default.
        rate_limiter: Per-client limiter, configured from the environment
            by default.

    Returns:
        The configured FastAPI application.
    """
    store = store if store is not None else InMemorySessionStore()
    oauth = oauth if oauth is not None else OAuthManager()
    rate_limiter = rate_limiter if rate_limiter is not None else RateLimiter()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info(
            "Starting %s v%s (environment=%s)",
            APP_TITLE,
            __version__,
            get_environment(),
        )
        store.cleanup_expired()
        rate_limiter.cleanup_stale()
        yield
        logger.info("Shutting down")

    app = FastAPI(
        title=APP_TITLE,
        version=__version__,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    app.state.session_store = store
    app.state.oauth_manager = oauth
    app.state.gmail_relay = GmailRelay(store, oauth)
    app.state.rate_limiter = rate_limiter

    # Last added runs first: rate limiting, then headers, then compression.
    app.add_middleware(GZipMiddleware, minimum_size=1000)
    app.add_middleware(SecurityHeadersMiddleware, hsts=is_production())
    app.add_middleware(RateLimitMiddleware, limiter=rate_limiter)

    app.add_exception_handler(RequestValidationError, body_validation_error_handler)
    app.add_exception_handler(GmailOAuthAppError, app_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)

    app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")
    app.include_router(router)

    return app
