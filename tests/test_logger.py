"""Tests for the logging setup module."""

import logging
import sys

from src.utils.logger import get_logger, setup_logging


def _stdout_handlers(root: logging.Logger) -> list[logging.Handler]:
    return [
        h
        for h in root.handlers
        if isinstance(h, logging.StreamHandler) and h.stream is sys.stdout
    ]


class TestSetupLogging:
    """Tests for the setup_logging function."""

    def test_setup_creates_handler(self) -> None:
        root = logging.getLogger()
        saved = root.handlers[:]
        root.handlers.clear()

        setup_logging("DEBUG")
        assert len(_stdout_handlers(root)) == 1
        assert root.level == logging.DEBUG

        root.handlers[:] = saved

    def test_setup_idempotent(self) -> None:
        root = logging.getLogger()
        saved = root.handlers[:]
        root.handlers.clear()

        setup_logging("INFO")
        count = len(root.handlers)
        setup_logging("INFO")
        assert len(root.handlers) == count

        root.handlers[:] = saved

    def test_second_call_updates_level(self) -> None:
        root = logging.getLogger()
        saved = root.handlers[:]
        root.handlers.clear()

        setup_logging("INFO")
        setup_logging("WARNING")
        assert root.level == logging.WARNING

        root.handlers[:] = saved

    def test_setup_invalid_level_defaults_to_info(self) -> None:
        root = logging.getLogger()
        saved = root.handlers[:]
        root.handlers.clear()

        setup_logging("NONEXISTENT")
        assert root.level == logging.INFO

        root.handlers[:] = saved

    def test_format_includes_logger_name(self) -> None:
        root = logging.getLogger()
        saved = root.handlers[:]
        root.handlers.clear()

        setup_logging("INFO")
        fmt = _stdout_handlers(root)[0].formatter._fmt
        assert "%(name)s" in fmt
        assert "%(levelname)s" in fmt

        root.handlers[:] = saved


class TestGetLogger:
    """Tests for the get_logger function."""

    def test_returns_named_logger(self) -> None:
        logger = get_logger("src.schedule.parser")
        assert isinstance(logger, logging.Logger)
        assert logger.name == "src.schedule.parser"

    def test_same_name_same_logger(self) -> None:
        assert get_logger("src.ocr") is get_logger("src.ocr")
