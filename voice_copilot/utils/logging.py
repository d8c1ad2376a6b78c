"""
Logging setup for the Voice Copilot CLI.

Library modules only do ``logging.getLogger(__name__)``; the CLI calls
setup_logging() once at startup.
"""

import logging
import os
import sys

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_DATEFMT = "%H:%M:%S"

# Client libraries that log every request/frame at INFO or DEBUG
NOISY_LOGGERS = ("websockets", "urllib3", "httpx", "httpcore")


def resolve_level(debug: bool = False, level: str | None = None) -> int:
    """Pick the log level: --debug, then an explicit level, then LOG_LEVEL, then INFO."""
    if debug:
        return logging.DEBUG
    name = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    return getattr(logging, name, logging.INFO)


def setup_logging(debug: bool = False, level: str | None = None) -> logging.Logger:
    """
    Configure the root logger for the console.

    Args:
        debug: Log everything, third-party client chatter included
        level: Level name used when not debugging (defaults to LOG_LEVEL env or INFO)

    Returns:
        The root logger
    """
    log_level = resolve_level(debug, level)

    logging.basicConfig(
        level=log_level,
        format=DEFAULT_FORMAT,
        datefmt=DEFAULT_DATEFMT,
        stream=sys.stdout,
    )
    root = logging.getLogger()
    root.setLevel(log_level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if debug else logging.WARNING)

    return root
