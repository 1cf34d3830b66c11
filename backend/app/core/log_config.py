"""
Logging Configuration

Configures process-wide logging once at startup. The "audit" logger is
left at INFO regardless of LOG_LEVEL so admin actions are always recorded.
"""

import logging
import sys

from app.core.config import settings


def setup_logging(level: str | None = None) -> None:
    """
    Configure logging for the application.

    Args:
        level: Level name; falls back to LOG_LEVEL from the environment
    """
    level_name = (level or settings.LOG_LEVEL or "INFO").upper()
    numeric_level = getattr(logging, level_name, logging.INFO)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)-8s %(name)s: %(message)s")
    )

    root = logging.getLogger()
    root.setLevel(numeric_level)

    # Avoid duplicate handlers if called multiple times
    root.handlers.clear()
    root.addHandler(handler)

    logging.getLogger("audit").setLevel(logging.INFO)
    # httpx logs every Telegram long-poll request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
