"""
Tests for structured logging setup
"""

import io
import json
import logging

from btms.logging_config import (
    JSONFormatter, TextFormatter, setup_logging, get_logger, log_action
)


class TestLogging:
    """Test formatters and the log_action helper"""

    def setup_method(self):
        self.logger = setup_logging("INFO", "btms_test")
        self.stream = io.StringIO()
        self.logger.handlers[0].setStream(self.stream)

    def teardown_method(self):
        for handler in self.logger.handlers[:]:
            self.logger.removeHandler(handler)

    def lines(self):
        return [json.loads(line) for line in self.stream.getvalue().splitlines()]

    def test_json_output(self):
        self.logger.info("plain message")

        entry = self.lines()[0]
        assert entry["level"] == "INFO"
        assert entry["message"] == "plain message"
        assert entry["logger"] == "btms_test"
        assert "action" not in entry

    def test_log_action_structured_fields(self):
        log_action(
            self.logger, "warning", "deposit rejected",
            action="deposit", resource="account:1001",
            extra={"error": "invalid_amount"}
        )

        entry = self.lines()[0]
        assert entry["level"] == "WARNING"
        assert entry["action"] == "deposit"
        assert entry["resource"] == "account:1001"
        assert entry["extra"] == {"error": "invalid_amount"}

    def test_log_action_respects_level(self):
        log_action(self.logger, "debug", "too quiet", action="scan")
        assert self.stream.getvalue() == ""

    def test_child_loggers_share_handler(self):
        child = get_logger("btms_test.storage")
        log_action(child, "error", "disk full", action="append")

        entry = self.lines()[0]
        assert entry["logger"] == "btms_test.storage"
        assert entry["level"] == "ERROR"

    def test_setup_is_idempotent(self):
        logger = setup_logging("INFO", "btms_test")
        assert len(logger.handlers) == 1
        assert logger.propagate is False

    def test_exception_included(self):
        try:
            raise OSError("boom")
        except OSError:
            self.logger.exception("failed")
        assert "OSError: boom" in self.lines()[0]["exception"]


class TestTextFormatter:
    """Test the human-readable format"""

    def test_structured_fields_appended(self):
        record = logging.LogRecord("btms", logging.INFO, __file__, 1, "moved", (), None)
        record.action = "transfer"
        record.resource = "account:1"
        record.extra = {"amount": 5.0}

        line = TextFormatter().format(record)

        assert "INFO btms: moved" in line
        assert "action=transfer" in line
        assert "resource=account:1" in line
        assert "amount=5.0" in line

    def test_setup_text_format(self, tmp_path):
        log_file = tmp_path / "btms.log"
        logger = setup_logging("INFO", "btms_text_test", log_format="text", log_file=str(log_file))
        try:
            logger.info("to file")
            for handler in logger.handlers:
                handler.flush()
            assert isinstance(logger.handlers[0].formatter, TextFormatter)
            assert "to file" in log_file.read_text()
        finally:
            for handler in logger.handlers[:]:
                logger.removeHandler(handler)
                handler.close()

    def test_json_formatter_drops_missing_fields(self):
        record = logging.LogRecord("btms", logging.INFO, __file__, 1, "bare", (), None)
        entry = json.loads(JSONFormatter().format(record))
        assert set(entry) == {"timestamp", "level", "module", "logger", "message"}
