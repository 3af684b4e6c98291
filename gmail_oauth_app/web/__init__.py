"""Browser-facing web layer: routes, templates and the app factory."""

from gmail_oauth_app.web.app import create_app

__all__ = ["create_app"]
