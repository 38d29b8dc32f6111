"""Tests for logging setup."""

import logging
from pathlib import Path

import pytest

from dogfight.core import logging_system
from dogfight.core.logging_system import get_logger, initialize_logging, is_initialized


@pytest.fixture(autouse=True)
def restore_root_level():
    """Keep root logger level changes local to each test."""
    root = logging.getLogger()
    level = root.level
    yield
    root.setLevel(level)


class TestGetLogger:
    """Test logger lookup."""

    def test_returns_named_logger(self) -> None:
        """Test loggers are standard library loggers keyed by name."""
        logger = get_logger("dogfight.tests.example")

        assert isinstance(logger, logging.Logger)
        assert logger.name == "dogfight.tests.example"
        assert get_logger("dogfight.tests.example") is logger


class TestInitializeLogging:
    """Test dictConfig loading and fallbacks."""

    def test_loads_yaml_config(self, tmp_path: Path) -> None:
        """Test a YAML dictConfig file is applied."""
        config = tmp_path / "logging.yaml"
        config.write_text(
            "version: 1\n"
            "disable_existing_loggers: false\n"
            "loggers:\n"
            "  dogfight_test_yaml:\n"
            "    level: ERROR\n",
            encoding="utf-8",
        )

        initialize_logging(str(config))

        assert logging.getLogger("dogfight_test_yaml").level == logging.ERROR
        assert is_initialized()

    def test_missing_file_falls_back(self, tmp_path: Path) -> None:
        """Test a missing config file still initializes logging."""
        logging_system._initialized = False

        initialize_logging(str(tmp_path / "missing.yaml"))

        assert is_initialized()

    def test_invalid_yaml_falls_back(self, tmp_path: Path) -> None:
        """Test unreadable YAML does not raise."""
        config = tmp_path / "broken.yaml"
        config.write_text("loggers: [unclosed\n", encoding="utf-8")

        initialize_logging(str(config))

        assert is_initialized()

    def test_level_override(self, tmp_path: Path) -> None:
        """Test the level argument sets the root level."""
        initialize_logging(str(tmp_path / "missing.yaml"), level="warning")

        assert logging.getLogger().level == logging.WARNING
