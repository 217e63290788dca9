"""Unit tests for logging setup."""

import logging

from common.logging_config import IdentifierMaskingFilter, setup_logging


def make_record(msg, args=()):
    return logging.LogRecord("test", logging.INFO, __file__, 1, msg, args, None)


class TestIdentifierMaskingFilter:
    """Test hash abbreviation in log records."""

    def test_masks_long_hex_in_message(self):
        record = make_record("Stored chunk for 0123456789abcdef0123456789abcdef")

        IdentifierMaskingFilter().filter(record)

        assert record.msg == "Stored chunk for 01234567***"

    def test_masks_args(self):
        record = make_record("file %s", ("fedcba9876543210fedcba9876543210-3",))

        IdentifierMaskingFilter().filter(record)

        assert record.args == ("fedcba98***-3",)

    def test_leaves_short_values(self):
        record = make_record("chunk abc-1 stored")

        IdentifierMaskingFilter().filter(record)

        assert record.msg == "chunk abc-1 stored"


class TestSetupLogging:
    """Test logger configuration."""

    def test_single_handler(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")

        logger = setup_logging("test_component_single")
        again = setup_logging("test_component_single")

        assert logger is again
        assert len(logger.handlers) == 1
        assert logger.level == logging.DEBUG
        assert logger.propagate is False

    def test_masking_filter_enabled_by_env(self, monkeypatch):
        monkeypatch.setenv("LOG_MASK_IDENTIFIERS", "true")

        logger = setup_logging("test_component_masked")

        assert any(isinstance(f, IdentifierMaskingFilter) for f in logger.handlers[0].filters)

    def test_unknown_level_falls_back_to_info(self):
        logger = setup_logging("test_component_level", log_level="LOUD")

        assert logger.level == logging.INFO
