"""Entry point for the Gmail OAuth web application."""

from __future__ import annotations

import logging
import os
import sys

from dotenv import load_dotenv


def configure_logging() -> None:
    """Configure logging to stderr.

    Respects LOG_LEVEL env var (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """
    log_level_str = os.getenv("LOG_LEVEL", "INFO").upper()
    log_level = logging.getLevelNamesMapping().get(log_level_str, logging.INFO)
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )
    # Reduce noise from Google libraries
    logging.getLogger("googleapiclient").setLevel(logging.WARNING)
    logging.getLogger("google.auth").setLevel(logging.WARNING)


def validate_environment() -> bool:
    """Validate required environment variables.

    Returns:
        True if the OAuth client is configured, False otherwise.
    """
    logger = logging.getLogger(__name__)

    required = ["GOOGLE_CLIENT_ID", "GOOGLE_CLIENT_SECRET"]
    missing = [var for var in required if not os.getenv(var)]

    if missing:
        logger.error("Missing required environment variables: %s", ", ".join(missing))
        return False

    return True


def main() -> None:
    """Main entry point.

    Loads environment, validates configuration and serves the app with
    uvicorn on HOST:PORT.
    """
    # Load .env file if present
    load_dotenv()
    # Google answers "profile email" with the expanded userinfo.* scope URLs
    os.environ.setdefault("OAUTHLIB_RELAX_TOKEN_SCOPE", "1")

    configure_logging()
    logger = logging.getLogger(__name__)

    if not validate_environment():
        logger.error("Environment validation failed. Exiting.")
        sys.exit(1)

    # Import after the environment is loaded
    import uvicorn

    from gmail_oauth_app.config import get_host, get_port, is_production
    from gmail_oauth_app.web import create_app

    host = get_host()
    port = get_port()
    logger.info("Starting Gmail OAuth app on http://%s:%d", host, port)

    # Behind a TLS-terminating proxy in production, trust its client address
    uvicorn.run(
        create_app(),
        host=host,
        port=port,
        log_level=logging.getLevelName(logging.getLogger().level).lower(),
        proxy_headers=is_production(),
        forwarded_allow_ips="*" if is_production() else None,
    )


if __name__ == "__main__":
    main()
