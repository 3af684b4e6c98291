"""Jinja2 templates and error page rendering."""

from __future__ import annotations

from pathlib import Path

from fastapi import Request
from fastapi.templating import Jinja2Templates
from starlette.responses import Response

WEB_DIR = Path(__file__).resolve().parent
TEMPLATES_DIR = WEB_DIR / "templates"
STATIC_DIR = WEB_DIR / "static"

APP_TITLE = "Gmail API Test Application"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


def render_error(
    request: Request, title: str, error: str, status_code: int = 500
) -> Response:
    """Render ``error.html`` with a title and a user-facing message."""
    return templates.TemplateResponse(
        request,
        "error.html",
        {"title": title, "error": error},
        status_code=status_code,
    )
