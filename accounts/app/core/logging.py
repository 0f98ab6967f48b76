# accounts/app/core/logging.py
import logging

from accounts.app.core.config import Settings


def setup_logging(settings: Settings) -> None:
    """Configure the root logger from LOG_LEVEL / LOG_FORMAT."""
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    logging.basicConfig(level=level, format=settings.LOG_FORMAT)

    # SQL echo goes through SQLAlchemy's own logger when DATABASE_ECHO is on
    if not settings.DATABASE_ECHO:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
