"""
Logging for the tracker.

The CLI configures the "keto_tracker" logger once per command: records go
to stderr so they never mix with command output, and optionally to a log
file. Google client libraries are held at WARNING since the Drive backend
would otherwise log every discovery and token refresh.
"""

import logging
import sys
from pathlib import Path

from keto_tracker.utils.parameters import LoggingConfig

NOISY_LOGGERS = (
    "googleapiclient.discovery",
    "googleapiclient.discovery_cache",
    "google_auth_oauthlib",
    "google.auth.transport",
    "urllib3",
)


def _handlers(config: LoggingConfig) -> list[logging.Handler]:
    handlers: list[logging.Handler] = []
    if config.console:
        handlers.append(logging.StreamHandler(sys.stderr))
    if config.file:
        log_file = Path(config.file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    return handlers


def setup_logging(config: LoggingConfig, logger_name: str | None = None) -> logging.Logger:
    """
    Configure a logger from the logging section of the configuration.

    Calling it again replaces the handlers installed by the previous call.

    Args:
        config: Level, format and destinations.
        logger_name: Logger to configure; the root logger if None.

    Returns:
        The configured logger.

    Raises:
        ValueError: If the configured level is not a logging level name.
    """
    level = logging.getLevelName(config.level.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown logging level: {config.level}")

    logger = logging.getLogger(logger_name)
    logger.setLevel(level)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(config.format)
    for handler in _handlers(config):
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    return logger


def get_logger(name: str) -> logging.Logger:
    """
    Return the logger for a tracker module.

    Args:
        name: Dotted module name, usually __name__.

    Returns:
        The named logger; it inherits handlers from "keto_tracker".
    """
    return logging.getLogger(name)
