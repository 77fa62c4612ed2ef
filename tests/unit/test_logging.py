"""Unit tests for Tracklane logging configuration."""

import logging
import os
from pathlib import Path
from unittest.mock import patch

import pytest

from tracklane.logging import get_logger, setup_logging, truncate_output


@pytest.fixture(autouse=True)
def _reset_tracklane_logger():
    yield
    logger = logging.getLogger("tracklane")
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)


@pytest.mark.unit
class TestSetupLogging:
    """Tests for setup_logging function."""

    def test_creates_log_directory(self, tmp_path: Path) -> None:
        log_dir = tmp_path / "nested" / "logs"
        setup_logging(log_dir=log_dir, console=False)

        assert log_dir.exists()

    def test_writes_to_log_file(self, tmp_path: Path) -> None:
        logger = setup_logging(log_dir=tmp_path, console=False)
        logger.info("board loaded 42")

        content = (tmp_path / "tracklane.log").read_text()
        assert "board loaded 42" in content
        assert " | INFO" in content

    def test_component_loggers_share_file(self, tmp_path: Path) -> None:
        """Module loggers under tracklane.* write to the same file."""
        setup_logging(log_dir=tmp_path, console=False)

        logging.getLogger("tracklane.board.coordinator").info("move log")
        logging.getLogger("tracklane.store.store").info("store log")

        content = (tmp_path / "tracklane.log").read_text()
        assert "tracklane.board.coordinator | move log" in content
        assert "store log" in content

    def test_log_level_configurable(self, tmp_path: Path) -> None:
        setup_logging(log_dir=tmp_path, level="WARNING", console=False)
        logger = logging.getLogger("tracklane")
        logger.info("should not appear")
        logger.warning("should appear")

        content = (tmp_path / "tracklane.log").read_text()
        assert "should not appear" not in content
        assert "should appear" in content

    def test_settings_from_env(self, tmp_path: Path) -> None:
        env = {"TRACKLANE_LOG_DIR": str(tmp_path), "TRACKLANE_LOG_LEVEL": "DEBUG"}
        with patch.dict(os.environ, env):
            logger = setup_logging(console=False)

        assert logger.level == logging.DEBUG
        assert (tmp_path / "tracklane.log").exists()

    def test_no_duplicate_handlers_on_repeated_setup(self, tmp_path: Path) -> None:
        setup_logging(log_dir=tmp_path, console=False)
        setup_logging(log_dir=tmp_path, console=False)

        assert len(logging.getLogger("tracklane").handlers) == 1

    def test_rotation_configured(self, tmp_path: Path) -> None:
        logger = setup_logging(log_dir=tmp_path, max_bytes=1024, backup_count=3, console=False)

        (handler,) = logger.handlers
        assert handler.maxBytes == 1024
        assert handler.backupCount == 3

    def test_quiets_chatty_libraries(self, tmp_path: Path) -> None:
        engine = logging.getLogger("sqlalchemy.engine")
        previous = engine.level
        try:
            setup_logging(log_dir=tmp_path, console=False)

            assert engine.level == logging.WARNING
        finally:
            engine.setLevel(previous)

    def test_unknown_level_falls_back_to_info(self, tmp_path: Path) -> None:
        logger = setup_logging(log_dir=tmp_path, level="chatty", console=False)

        assert logger.level == logging.INFO


@pytest.mark.unit
class TestGetLogger:
    def test_prefixes_component(self) -> None:
        assert get_logger("remote").name == "tracklane.remote"

    def test_no_double_prefix(self) -> None:
        assert get_logger("tracklane.board").name == "tracklane.board"


@pytest.mark.unit
class TestTruncateOutput:
    def test_short_text_unchanged(self) -> None:
        assert truncate_output("short text", max_length=100) == "short text"

    def test_long_text_truncated(self) -> None:
        result = truncate_output("x" * 200, max_length=100)

        assert result.startswith("x" * 100)
        assert "[truncated, 100 more chars]" in result
