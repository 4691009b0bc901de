"""
Tests for logging setup and display helpers.
"""

import logging
from datetime import datetime, timedelta, timezone

import pytest

from imageprune.core.config import AppConfig
from imageprune.utils import humanize_age, setup_logging, short_digest

NOW = datetime(2024, 6, 1, 12, 0, 0, tzinfo=timezone.utc)


class TestHumanizeAge:
    """Test relative age rendering."""

    @pytest.mark.parametrize("delta,expected", [
        (timedelta(0), "Less than a second ago"),
        (timedelta(seconds=1), "1 second ago"),
        (timedelta(seconds=59), "59 seconds ago"),
        (timedelta(minutes=5), "5 minutes ago"),
        (timedelta(hours=1), "1 hour ago"),
        (timedelta(days=2), "2 days ago"),
        (timedelta(days=14), "2 weeks ago"),
        (timedelta(days=60), "2 months ago"),
        (timedelta(days=400), "1 year ago"),
    ])
    def test_ages(self, delta, expected):
        assert humanize_age(NOW - delta, NOW) == expected

    def test_future_creation_time(self):
        assert humanize_age(NOW + timedelta(hours=1), NOW) == "Less than a second ago"

    def test_naive_times_treated_as_utc(self):
        assert humanize_age(datetime(2024, 6, 1, 11, 0, 0), NOW) == "1 hour ago"


class TestShortDigest:
    """Test digest truncation."""

    def test_truncates(self):
        assert short_digest("sha256:" + "ab" * 32) == "abababababab"

    def test_custom_length(self):
        assert short_digest("sha256:0123456789", length=4) == "0123"

    def test_missing(self):
        assert short_digest(None) == ""
        assert short_digest("") == ""


class TestSetupLogging:
    """Test root logger configuration."""

    @pytest.fixture(autouse=True)
    def restore_root_logger(self):
        root = logging.getLogger()
        handlers, level = root.handlers[:], root.level
        yield
        root.handlers[:] = handlers
        root.setLevel(level)

    def test_default_level(self):
        setup_logging()
        assert logging.getLogger().level == logging.WARNING

    def test_configured_level(self):
        setup_logging(AppConfig(logging={"level": "error"}))
        assert logging.getLogger().level == logging.ERROR

    def test_debug_flag_wins(self):
        setup_logging(AppConfig(debug=True, logging={"level": "error"}))
        assert logging.getLogger().level == logging.DEBUG

    def test_format_applied(self):
        setup_logging(AppConfig(logging={"format": "%(levelname)s:%(message)s"}))
        handler = logging.getLogger().handlers[0]
        assert handler.formatter._fmt == "%(levelname)s:%(message)s"
