"""Tests for logging setup."""

import logging
from pathlib import Path

import pytest

from keto_tracker.utils.logging_config import NOISY_LOGGERS, get_logger, setup_logging
from keto_tracker.utils.parameters import LoggingConfig


def test_file_handler_writes_records(tmp_path: Path) -> None:
    """Test records reach the configured log file, creating its folder."""
    log_file = tmp_path / "logs" / "tracker.log"
    config = LoggingConfig(level="DEBUG", format="%(levelname)s %(message)s", file=str(log_file), console=False)

    logger = setup_logging(config, "keto_tracker.test_file")
    get_logger("keto_tracker.test_file.child").debug("saved metric")
    for handler in logger.handlers:
        handler.flush()

    if "DEBUG saved metric" not in log_file.read_text(encoding="utf-8"):
        raise AssertionError("Expected the record in the log file")
    setup_logging(LoggingConfig(console=False), "keto_tracker.test_file")


def test_repeated_setup_replaces_handlers(tmp_path: Path) -> None:
    """Test a second setup does not stack handlers."""
    config = LoggingConfig(level="warning", console=True)

    setup_logging(config, "keto_tracker.test_repeat")
    logger = setup_logging(config, "keto_tracker.test_repeat")

    if len(logger.handlers) != 1:
        raise AssertionError(f"Expected one handler, got {len(logger.handlers)}")
    if logger.level != logging.WARNING:
        raise AssertionError(f"Expected WARNING, got {logger.level}")


def test_google_client_loggers_are_quieted() -> None:
    """Test Drive client libraries stay at WARNING under a DEBUG tracker."""
    setup_logging(LoggingConfig(level="DEBUG", console=False), "keto_tracker.test_quiet")

    for name in NOISY_LOGGERS:
        if logging.getLogger(name).level != logging.WARNING:
            raise AssertionError(f"{name} should be held at WARNING")


def test_unknown_level_rejected() -> None:
    """Test a misspelled level fails loudly."""
    with pytest.raises(ValueError):
        setup_logging(LoggingConfig(level="VERBOSE", console=False), "keto_tracker.test_level")
