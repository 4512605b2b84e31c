"""
Tests for logging helpers
"""

import logging

from storefront.logging import configure_logging, get_logger, sanitize_id_for_logging, sanitize_string_for_logging


class TestSanitizeId:

    def test_truncates_to_eight(self):
        assert sanitize_id_for_logging("guest-prod-a-default-1700000000000") == "guest-pr"

    def test_short_id_unchanged(self):
        assert sanitize_id_for_logging("srv-1") == "srv-1"

    def test_missing(self):
        assert sanitize_id_for_logging(None) == "N/A"
        assert sanitize_id_for_logging("") == "N/A"

    def test_escapes_newlines(self):
        assert "\n" not in sanitize_id_for_logging("a\nb")


class TestSanitizeString:

    def test_truncates_with_ellipsis(self):
        value = sanitize_string_for_logging("x" * 60, max_length=10)
        assert value == "x" * 10 + "..."

    def test_escapes_control_characters(self):
        value = sanitize_string_for_logging("line1\r\nFAKE ENTRY\x00")
        assert value == "line1\\r\\nFAKE ENTRY"

    def test_missing(self):
        assert sanitize_string_for_logging(None) == "N/A"


def test_get_logger_is_cached():
    assert get_logger("storefront.cart") is get_logger("storefront.cart")


def test_configure_logging_installs_one_handler():
    first = configure_logging(level="debug")
    second = configure_logging(level="warning")

    assert first is second
    assert len(second.handlers) == 1
    assert second.level == logging.WARNING
    assert logging.getLogger("httpx").level == logging.WARNING

    configure_logging(level="info")
