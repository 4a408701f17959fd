"""Tests for settings and logging setup."""

import logging

import pytest

from procurement.core.config import Settings
from procurement.core.logger import redact_token, setup_logger


class TestSettings:
    """Tests for environment-driven settings."""

    def test_defaults(self, monkeypatch):
        """Test page sizes and token algorithm defaults."""
        monkeypatch.delenv("APPROVALS_PAGE_SIZE", raising=False)
        settings = Settings(_env_file=None)

        assert settings.approvals_page_size == 10
        assert settings.max_page_size == 100
        assert settings.algorithm == "HS256"

    def test_env_override(self, monkeypatch):
        """Test that environment variables are case insensitive."""
        monkeypatch.setenv("approvals_page_size", "25")
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")

        settings = Settings(_env_file=None)

        assert settings.approvals_page_size == 25
        assert settings.log_level == "DEBUG"

    def test_cors_origins_list(self):
        settings = Settings(_env_file=None, cors_origins="https://a.example, https://b.example,")
        assert settings.cors_origins_list == ["https://a.example", "https://b.example"]


class TestLogger:
    """Tests for logger setup."""

    def test_invalid_level(self):
        with pytest.raises(ValueError, match="Invalid log level"):
            setup_logger("procurement.test.invalid", level="LOUD")

    def test_no_duplicate_handlers(self):
        first = setup_logger("procurement.test.dupes")
        second = setup_logger("procurement.test.dupes", level="WARNING")

        assert first is second
        assert len(second.handlers) == 1
        assert second.level == logging.WARNING

    def test_file_logging(self, tmp_path):
        logger = setup_logger("procurement.test.file", log_dir=str(tmp_path), file_logging=True, console_logging=False)
        logger.info("hello")

        assert (tmp_path / "procurement.test.file.log").exists()


@pytest.mark.parametrize(
    "token, expected",
    [
        ("a1b2c3d4e5f60718293a4b5c6d7e8f90", "a1b2c3d4..."),
        ("", ""),
        (None, None),
    ],
)
def test_redact_token(token, expected):
    assert redact_token(token) == expected
