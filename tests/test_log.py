"""
Tests for logging setup.
"""

import logging

import pytest

from messaging_sendpulse.log import ExtraFormatter, setup_logging


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers = handlers
    root.setLevel(level)


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_sets_level_and_single_handler(self):
        setup_logging("debug", rich_output=False)

        root = logging.getLogger()
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert logging.getLogger("httpx").level == logging.WARNING

    def test_invalid_level(self):
        with pytest.raises(ValueError, match="Invalid log level"):
            setup_logging("chatty")


class TestExtraFormatter:
    """Tests for ExtraFormatter."""

    def test_appends_extra_fields(self):
        record = logging.LogRecord("test", logging.INFO, __file__, 1, "Sent message", (), None)
        record.attempt = 2
        record.target = "*********8026"

        formatted = ExtraFormatter("%(message)s").format(record)

        assert formatted == "Sent message [attempt=2 target=*********8026]"

    def test_plain_message_without_extra(self):
        record = logging.LogRecord("test", logging.INFO, __file__, 1, "hello", (), None)

        assert ExtraFormatter("%(message)s").format(record) == "hello"
