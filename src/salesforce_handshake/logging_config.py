"""Logging configuration for the Salesforce handshake service.

All loggers live under the ``salesforce_handshake`` namespace so that a
single call to :func:`setup_logging` controls the whole package.

Output goes to stderr: stdout belongs to the MCP stdio transport.
"""

from __future__ import annotations

import logging
import os
import sys

ROOT_LOGGER_NAME = "salesforce_handshake"

_LOG_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


def setup_logging(level: str | None = None) -> None:
    """Configure the package root logger.

    Args:
        level: Log level name. Defaults to the LOG_LEVEL environment
            variable, then INFO.
    """
    level_name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()

    root = logging.getLogger(ROOT_LOGGER_NAME)
    root.setLevel(getattr(logging, level_name, logging.INFO))

    if not root.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(_LOG_FORMAT))
        root.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """Get a package logger, e.g. ``get_logger("oauth.state")``."""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
