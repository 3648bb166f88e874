"""Process-wide logging setup shared by the API server and the admin CLI."""

from __future__ import annotations

import logging

from .config import Settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging(settings: Settings) -> None:
    """Configure the root logger once; DEBUG in development unless ``LOG_LEVEL`` says otherwise."""
    level = settings.log_level or ("DEBUG" if settings.is_development else "INFO")
    logging.basicConfig(level=level, format=LOG_FORMAT)
    # psycopg's pool is chatty at DEBUG outside development
    if not settings.is_development:
        logging.getLogger("psycopg.pool").setLevel(logging.WARNING)
