"""Logging setup for sitesync.

Modules log through ``logging.getLogger(__name__)`` and attach structured context
with ``extra=fields(key=..., path=...)``. ContextFormatter appends that context to
each line as ``key=value`` pairs.
"""

from __future__ import annotations

import logging
from typing import Any

LOGGER_NAME = "sitesync"
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


def fields(**context: Any) -> dict[str, Any]:
    """Build the ``extra`` mapping for a structured log call."""
    return {"context": context}


class ContextFormatter(logging.Formatter):
    """Formatter that renders a record's ``context`` as trailing key=value pairs."""

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        context = getattr(record, "context", None)
        if not context:
            return message
        pairs = " ".join(f"{key}={_format_value(value)}" for key, value in context.items())
        return f"{message} {pairs}"


def _format_value(value: Any) -> str:
    text = str(value)
    if not text or any(ch.isspace() for ch in text):
        return repr(text)
    return text


def configure_logging(verbose: bool = False) -> logging.Logger:
    """Attach a single stderr handler to the sitesync logger.

    Calling it again replaces the previous handler, so the CLI can be invoked
    repeatedly in one process without duplicating output.

    Args:
        verbose: Log DEBUG records when True, INFO and above otherwise.

    Returns:
        The configured package logger.
    """
    logger = logging.getLogger(LOGGER_NAME)
    level = logging.DEBUG if verbose else logging.INFO
    logger.setLevel(level)
    for handler in list(logger.handlers):
        if getattr(handler, "_sitesync", False):
            logger.removeHandler(handler)
    handler = logging.StreamHandler()
    handler.setLevel(level)
    handler.setFormatter(ContextFormatter(LOG_FORMAT))
    handler._sitesync = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    return logger
