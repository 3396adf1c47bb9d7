"""
SESSION LOGGING
===============
Named loggers for the session middleware and token redaction for log lines.

FLOW:
- get_logger() returns a "stateless_session.*" logger.
- When SESSION_LOG_FILE is set, a rotating file handler is attached once.

HOW:
- Tokens are never logged whole; redact_token() keeps a short prefix.
"""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler


ROOT_LOGGER = "stateless_session"
TOKEN_PREFIX_CHARS = 8


def _attach_file_handler(logger: logging.Logger, path: str) -> None:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    handler = RotatingFileHandler(path, maxBytes=2_000_000, backupCount=3)
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.INFO)


def get_logger(name: str) -> logging.Logger:
    root = logging.getLogger(ROOT_LOGGER)
    log_file = os.getenv("SESSION_LOG_FILE")
    if log_file and not root.handlers:
        _attach_file_handler(root, log_file)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def redact_token(token: object) -> str:
    if not token:
        return ""
    token = str(token)
    if len(token) <= TOKEN_PREFIX_CHARS:
        return "***"
    return f"{token[:TOKEN_PREFIX_CHARS]}***"
