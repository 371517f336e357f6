"""Logging for the tfe client.

The package only ever logs through children of the ``tfe`` logger and
attaches a ``NullHandler`` to it, so nothing is printed unless the
embedding application configures logging.  :func:`setup_logging` is a
convenience for scripts that want the client's own handlers.
"""

from __future__ import annotations

import logging
import re
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TextIO

from tfe.core.config import get_settings

ROOT_LOGGER = "tfe"

_BEARER = re.compile(r"(Bearer\s+)[^\s'\"]+", re.IGNORECASE)

_configured = False

logging.getLogger(ROOT_LOGGER).addHandler(logging.NullHandler())


class TokenRedactingFilter(logging.Filter):
    """Mask bearer tokens in rendered log messages."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = _BEARER.sub(r"\1***", message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


def setup_logging(
    level: str | None = None,
    log_file: str | None = None,
    stream: TextIO | None = None,
) -> logging.Logger:
    """Attach console (and optionally rotating file) handlers to ``tfe``. Idempotent.

    Args:
        level:    Overrides ``TFE_LOG_LEVEL``.
        log_file: Overrides ``TFE_LOG_FILE``; empty means console only.
        stream:   Console stream, stdout by default.
    """
    global _configured
    logger = logging.getLogger(ROOT_LOGGER)
    if _configured:
        return logger

    settings = get_settings()
    level = level or settings.log_level
    log_file = settings.log_file if log_file is None else log_file

    logger.setLevel(getattr(logging, level.upper(), logging.WARNING))
    logger.propagate = False

    fmt = logging.Formatter(
        "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    redact = TokenRedactingFilter()

    console = logging.StreamHandler(stream or sys.stdout)
    console.setFormatter(fmt)
    console.addFilter(redact)
    logger.addHandler(console)

    # 5 MB × 3 backups
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_path, maxBytes=5 * 1024 * 1024, backupCount=3, encoding="utf-8"
        )
        file_handler.setFormatter(fmt)
        file_handler.addFilter(redact)
        logger.addHandler(file_handler)

    _configured = True
    logger.debug("Logging initialised (level=%s, file=%s)", level, log_file or "-")
    return logger


def reset_logging() -> None:
    """Close and drop the handlers added by :func:`setup_logging`."""
    global _configured
    logger = logging.getLogger(ROOT_LOGGER)
    for handler in list(logger.handlers):
        if isinstance(handler, logging.NullHandler):
            continue
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
    _configured = False


def get_logger(name: str = ROOT_LOGGER) -> logging.Logger:
    """Get ``tfe`` or one of its children, e.g. ``get_logger("tfe.transport")``."""
    return logging.getLogger(name)
