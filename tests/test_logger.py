"""Tests for logger.py -- setup_logging() and JsonFormatter.

Strategy: Mock logging.basicConfig to verify setup_logging passes correct args,
since pytest's log capture plugin interferes with actual basicConfig calls.
"""

import json
import logging
import sys
from unittest.mock import patch

from timeline_sync.logger import JsonFormatter, setup_logging

# ---------------------------------------------------------------------------
# setup_logging tests
# ---------------------------------------------------------------------------


class TestSetupLogging:
    """Tests for setup_logging()."""

    @patch("timeline_sync.logger.logging.basicConfig")
    def test_logs_to_stderr(self, mock_basic):
        """A StreamHandler(stderr) is always installed."""
        setup_logging()

        mock_basic.assert_called_once()
        handlers = mock_basic.call_args[1]["handlers"]
        assert len(handlers) == 1
        assert isinstance(handlers[0], logging.StreamHandler)
        assert handlers[0].stream is sys.stderr

    @patch("timeline_sync.logger.logging.basicConfig")
    def test_default_level_is_info(self, mock_basic, monkeypatch):
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        setup_logging()
        assert mock_basic.call_args[1]["level"] == logging.INFO

    @patch("timeline_sync.logger.logging.basicConfig")
    def test_debug_overrides_level(self, mock_basic, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "ERROR")
        setup_logging(debug=True)
        assert mock_basic.call_args[1]["level"] == logging.DEBUG

    @patch("timeline_sync.logger.logging.basicConfig")
    def test_env_log_level_honored(self, mock_basic, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "error")
        setup_logging()
        assert mock_basic.call_args[1]["level"] == logging.ERROR

    @patch("timeline_sync.logger.logging.basicConfig")
    def test_env_beats_configured_level(self, mock_basic, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "ERROR")
        setup_logging(level="DEBUG")
        assert mock_basic.call_args[1]["level"] == logging.ERROR

    @patch("timeline_sync.logger.logging.basicConfig")
    def test_configured_level_used_without_env(self, mock_basic, monkeypatch):
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        setup_logging(level="WARNING")
        assert mock_basic.call_args[1]["level"] == logging.WARNING

    @patch("timeline_sync.logger.logging.basicConfig")
    def test_unknown_level_falls_back_to_info(self, mock_basic, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "CHATTY")
        setup_logging()
        assert mock_basic.call_args[1]["level"] == logging.INFO

    @patch("timeline_sync.logger.logging.basicConfig")
    def test_log_file_adds_file_handler(self, mock_basic, tmp_path):
        setup_logging(log_file=str(tmp_path / "sync.log"))

        handlers = mock_basic.call_args[1]["handlers"]
        file_handlers = [h for h in handlers if isinstance(h, logging.FileHandler)]
        assert len(handlers) == 2
        assert len(file_handlers) == 1
        for h in file_handlers:
            h.close()

    @patch("timeline_sync.logger.logging.basicConfig")
    def test_json_format_uses_json_formatter(self, mock_basic):
        setup_logging(log_format="json")
        handlers = mock_basic.call_args[1]["handlers"]
        assert all(isinstance(h.formatter, JsonFormatter) for h in handlers)

    @patch("timeline_sync.logger.logging.basicConfig")
    def test_third_party_silenced(self, _mock_basic, monkeypatch):
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        setup_logging()
        assert logging.getLogger("urllib3").level == logging.WARNING
        assert logging.getLogger("requests").level == logging.WARNING


# ---------------------------------------------------------------------------
# JsonFormatter tests
# ---------------------------------------------------------------------------


class TestJsonFormatter:
    """Tests for JsonFormatter."""

    def _record(self, **kwargs):
        defaults = dict(
            name="timeline_sync.sync.executor",
            level=logging.INFO,
            pathname="executor.py",
            lineno=1,
            msg="Created %s",
            args=("Riverside",),
            exc_info=None,
        )
        defaults.update(kwargs)
        return logging.LogRecord(**defaults)

    def test_basic_output(self):
        data = json.loads(JsonFormatter(datefmt="%Y-%m-%d %H:%M:%S").format(self._record()))
        assert "ts" in data
        assert data["level"] == "INFO"
        assert data["logger"] == "timeline_sync.sync.executor"
        assert data["msg"] == "Created Riverside"
        assert "exc" not in data
        assert "operation" not in data

    def test_includes_operation_context(self):
        record = self._record()
        record.operation = "create"
        record.record_id = "p1"
        data = json.loads(JsonFormatter().format(record))
        assert data["operation"] == "create"
        assert data["record_id"] == "p1"

    def test_includes_exception(self):
        try:
            raise ValueError("test error")
        except ValueError:
            exc_info = sys.exc_info()

        output = JsonFormatter().format(
            self._record(level=logging.ERROR, msg="failed", args=(), exc_info=exc_info)
        )
        data = json.loads(output)
        assert "ValueError: test error" in data["exc"]
