"""Unit tests for structured logging helpers."""

import json
import logging
import logging.handlers
from unittest.mock import MagicMock

from knotty_mcp.config.logging import (
    configure_logging,
    get_logger,
    log_performance,
    redact_credentials,
    sanitize_log_data,
)


class TestConfigureLogging:
    def test_sets_root_level(self):
        configure_logging(level="WARNING", json_logs=False)

        assert logging.getLogger().level == logging.WARNING

    def test_file_handler_creates_directory(self, tmp_path):
        log_file = tmp_path / "logs" / "knotty.log"

        configure_logging(level="INFO", log_file=str(log_file))
        root = logging.getLogger()
        handlers = [
            h for h in root.handlers
            if isinstance(h, logging.handlers.RotatingFileHandler)
        ]
        try:
            assert log_file.parent.is_dir()
            assert handlers
        finally:
            for handler in handlers:
                root.removeHandler(handler)
                handler.close()

    def test_get_logger_binds_context(self):
        logger = get_logger(__name__, component="fetcher")

        assert logger is not None


class TestLogPerformance:
    def test_emits_metric_fields(self):
        logger = MagicMock()

        log_performance(logger, "parse_spec", 12.3456, total_endpoints=5)

        logger.info.assert_called_once_with(
            "Performance metric",
            operation="parse_spec",
            duration_ms=12.35,
            metric_type="performance",
            total_endpoints=5,
        )


class TestSanitizeLogData:
    def test_masks_sensitive_keys(self):
        data = {
            "url": "https://api.example.com",
            "auth_token": "secret",
            "Authorization": "Bearer secret",
        }

        sanitized = sanitize_log_data(data)

        assert sanitized["url"] == "https://api.example.com"
        assert sanitized["auth_token"] == "[REDACTED]"
        assert sanitized["Authorization"] == "[REDACTED]"
        assert data["auth_token"] == "secret"

    def test_masks_nested_values(self):
        sanitized = sanitize_log_data({"request": {"api_key": "k", "method": "GET"}})

        assert sanitized["request"] == {"api_key": "[REDACTED]", "method": "GET"}


class TestRedactCredentials:
    def test_processor_masks_bound_tokens(self):
        event = {"event": "Fetching spec", "url": "https://x.test", "auth_token": "t"}

        processed = redact_credentials(None, "info", event)

        assert processed == {
            "event": "Fetching spec",
            "url": "https://x.test",
            "auth_token": "[REDACTED]",
        }


class TestFileRendering:
    def _render_to_file(self, tmp_path, json_logs):
        log_file = tmp_path / "knotty.log"
        configure_logging(level="INFO", log_file=str(log_file), json_logs=json_logs)
        root = logging.getLogger()
        handlers = [
            h for h in root.handlers
            if isinstance(h, logging.handlers.RotatingFileHandler)
        ]
        try:
            get_logger("knotty.file_test").info("Spec refreshed", endpoints=5)
            for handler in handlers:
                handler.flush()
        finally:
            for handler in handlers:
                root.removeHandler(handler)
                handler.close()
        return log_file.read_text(encoding="utf-8").strip()

    def test_file_gets_json_lines(self, tmp_path):
        line = self._render_to_file(tmp_path, json_logs=True)

        record = json.loads(line)
        assert record["event"] == "Spec refreshed"
        assert record["endpoints"] == 5

    def test_file_follows_console_format(self, tmp_path):
        line = self._render_to_file(tmp_path, json_logs=False)

        assert "Spec refreshed" in line
        assert not line.startswith("{")
