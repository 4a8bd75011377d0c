"""structlog setup: key/value lines appended to the debug log file."""

from __future__ import annotations

import logging
from pathlib import Path

import structlog

from pos_cart.config import DEBUG_LOG_PATH

_configured = False


def configure_logging(path: str = DEBUG_LOG_PATH, level: int = logging.DEBUG) -> None:
    """Route structlog output to ``path``. Safe to call more than once."""
    global _configured
    if _configured:
        return

    log_file = Path(path)
    log_file.parent.mkdir(parents=True, exist_ok=True)
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            structlog.processors.KeyValueRenderer(key_order=["timestamp", "level", "event"]),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.WriteLoggerFactory(file=log_file.open("a", encoding="utf-8")),
        cache_logger_on_first_use=True,
    )
    # Quiet urllib3 connection chatter from requests.
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    _configured = True
