"""Tests for logging.py configuration."""

from __future__ import annotations

import logging

import structlog
from structlog.testing import capture_logs

from replay_tracker.config import settings
from replay_tracker.logging import SERVICE_NAME, _normalize_log_level, configure_logging, get_logger


class TestNormalizeLogLevel:
    def test_explicit_level(self):
        assert _normalize_log_level("warning", "production") == logging.WARNING

    def test_environment_default(self):
        assert _normalize_log_level(None, "production") == logging.INFO
        assert _normalize_log_level(None, "development") == logging.DEBUG

    def test_unknown_level_falls_back_to_info(self):
        assert _normalize_log_level("chatty", "development") == logging.INFO


class TestGetLogger:
    def test_binds_service_context(self):
        configure_logging(settings)
        try:
            with capture_logs() as logs:
                get_logger("replay_tracker.test", environment="staging").info("match_sync_start", puuid="p")
        finally:
            structlog.reset_defaults()

        assert logs == [
            {
                "event": "match_sync_start",
                "log_level": "info",
                "service": SERVICE_NAME,
                "logger_name": "replay_tracker.test",
                "environment": "staging",
                "puuid": "p",
            }
        ]

    def test_logger_created_before_configuration(self):
        """Module-level loggers pick up configuration applied after creation."""
        early = get_logger("replay_tracker.early")
        configure_logging(settings)
        try:
            with capture_logs() as logs:
                early.warning("redis_lock_failed", lock="lock:sync_account:p")
        finally:
            structlog.reset_defaults()

        assert logs[0]["logger_name"] == "replay_tracker.early"
        assert logs[0]["service"] == SERVICE_NAME
        assert "environment" not in logs[0]
