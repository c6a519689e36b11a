"""Tests for the logging setup."""

import logging
from unittest.mock import patch

from merged_comments.core.logger import LOGGER_NAME, SensitiveDataFilter, get_logger, setup_logger


def make_record(msg):
    return logging.LogRecord(LOGGER_NAME, logging.INFO, __file__, 1, msg, None, None)


class TestSensitiveDataFilter:
    def test_masks_email_addresses(self):
        record = make_record("New comment by ann.smith+wp@mail.example.org on post 10")
        assert SensitiveDataFilter().filter(record) is True
        assert record.msg == "New comment by [EMAIL_MASKED] on post 10"

    def test_leaves_other_messages(self):
        record = make_record("Primed post cache with 2 of 2 post(s)")
        SensitiveDataFilter().filter(record)
        assert record.msg == "Primed post cache with 2 of 2 post(s)"

    def test_non_string_message_untouched(self):
        record = make_record(42)
        assert SensitiveDataFilter().filter(record) is True
        assert record.msg == 42


class TestSetupLogger:
    def test_adds_handlers_once(self, tmp_dir):
        logger = logging.getLogger(LOGGER_NAME)
        saved = list(logger.handlers)
        logger.handlers.clear()
        try:
            with patch("merged_comments.core.logger.LOG_DIR", tmp_dir / "logs"):
                first = setup_logger("DEBUG", mask_logs=True)
                second = setup_logger("INFO")

            assert first is second is get_logger()
            assert len(first.handlers) == 2
            assert (tmp_dir / "logs").is_dir()
            assert all(
                any(isinstance(f, SensitiveDataFilter) for f in h.filters) for h in first.handlers
            )
        finally:
            for handler in logger.handlers:
                handler.close()
            logger.handlers[:] = saved
            logger.setLevel(logging.NOTSET)
