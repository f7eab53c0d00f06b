# roomcall/core/logging.py

import logging
import sys
from typing import Optional

from roomcall.core.config import settings

DEFAULT_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

# Third-party loggers and the level they are capped at
NOISY_LOGGERS = {
    "websockets": logging.WARNING,
    "websockets.protocol": logging.WARNING,
    "uvicorn": logging.INFO,
    "uvicorn.error": logging.INFO,
    "uvicorn.access": logging.WARNING,
}


def setup_logging(level: Optional[str] = None) -> None:
    """
    Configure logging for the relay.

    The level comes from the argument, else LOG_LEVEL, else INFO. Output goes
    to stdout. Per-frame websocket chatter and the access log for every
    health probe are held back unless the app itself runs at DEBUG.
    """
    level_name = (level or settings.LOG_LEVEL or "INFO").upper()
    app_level = getattr(logging, level_name, logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(app_level)

    # Uvicorn may have installed handlers already
    if not root_logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(DEFAULT_FORMAT))
        root_logger.addHandler(handler)

    for name, cap in NOISY_LOGGERS.items():
        logging.getLogger(name).setLevel(logging.DEBUG if app_level == logging.DEBUG else cap)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Shorthand for ``logging.getLogger``; use ``get_logger(__name__)``."""
    return logging.getLogger(name)
