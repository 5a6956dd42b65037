"""
Unit tests for the shared logging helpers.
"""

import pytest
import structlog

from shared.logging import (
    add_service_name,
    clear_context,
    configure_logging,
    request_id_var,
    set_request_id,
)


class TestRequestContext:
    """Test cases for request id binding."""

    def teardown_method(self):
        clear_context()

    def test_set_request_id_binds_both_contexts(self):
        """Test the id is visible to error bodies and to structlog."""
        request_id = set_request_id("req-7")

        assert request_id == "req-7"
        assert request_id_var.get() == "req-7"
        assert structlog.contextvars.get_contextvars()["request_id"] == "req-7"

    def test_blank_request_id_is_generated(self):
        """Test a missing or blank header yields a fresh id."""
        first = set_request_id("  ")
        second = set_request_id(None)

        assert first.strip()
        assert second.strip()
        assert first != second

    def test_clear_context(self):
        """Test clearing removes the id from both contexts."""
        set_request_id("req-8")

        clear_context()

        assert request_id_var.get() is None
        assert "request_id" not in structlog.contextvars.get_contextvars()


class TestConfigureLogging:
    """Test cases for logging configuration."""

    def test_service_name_from_component_logger(self):
        """Test component loggers are tagged with their service prefix."""
        event = add_service_name(None, "info", {"logger": "directory.cache", "event": "hit"})

        assert event["service"] == "directory"

    def test_service_name_falls_back_to_configured(self):
        """Test other loggers are tagged with the configured service."""
        configure_logging("directory", "info", env="production")

        event = add_service_name(None, "info", {"logger": "uvicorn", "event": "started"})

        assert event["service"] == "directory"

    def test_unknown_level_is_rejected(self):
        """Test a misspelt log level fails loudly."""
        with pytest.raises(ValueError):
            configure_logging("directory", "chatty")
