"""Tests for logging configuration and utilities."""

import json
import logging
import os
import time

from glance.logging import (
    ComponentFormatter,
    JSONLHandler,
    SecretRedactor,
    prune_old_logs,
)


class TestSecretRedactor:
    """Tests for SecretRedactor class."""

    def test_redacts_google_api_key(self):
        redactor = SecretRedactor()
        text = "Calling Gemini with AIzaSyA1b2C3d4E5f6G7h8I9j0KlMnOpQrStUv"
        result = redactor.redact(text)
        assert "AIza" in result
        assert "StUv" in result
        assert "1b2C3d4E5f6G7h8I9j0" not in result

    def test_redacts_openai_api_key(self):
        redactor = SecretRedactor()
        text = "OPENAI_API_KEY=sk-proj-abcdefghijklmnopqrstuvwxyz123456"
        result = redactor.redact(text)
        assert "OPENAI_API_KEY=" in result
        assert "sk-p" in result
        assert "3456" in result
        assert "abcdefghijklmnopqrstuvwxyz" not in result

    def test_redacts_env_assignment(self):
        redactor = SecretRedactor()
        result = redactor.redact("GEMINI_API_KEY=supersecretvalue99")
        assert result == "GEMINI_API_KEY=supe...ue99"

    def test_short_secret_fully_masked(self):
        redactor = SecretRedactor()
        assert redactor.redact("GEMINI_API_KEY=short123") == "GEMINI_API_KEY=***"

    def test_redacts_query_key(self):
        redactor = SecretRedactor()
        url = "https://generativelanguage.googleapis.com/v1?key=abcdef1234567890XYZ"
        result = redactor.redact(url)
        assert "abcdef1234567890" not in result

    def test_leaves_plain_text(self):
        redactor = SecretRedactor()
        text = "screenshot_captured url=https://example.com bytes=1234"
        assert redactor.redact(text) == text

    def test_disabled(self):
        redactor = SecretRedactor(enabled=False)
        text = "GEMINI_API_KEY=supersecretvalue99"
        assert redactor.redact(text) == text


class TestJSONLHandler:
    def test_writes_redacted_entries(self, tmp_path):
        handler = JSONLHandler(tmp_path)
        logger = logging.getLogger("glance.llm.retry")
        record = logger.makeRecord(
            logger.name,
            logging.INFO,
            __file__,
            1,
            "retry_attempt",
            None,
            None,
            extra={"attempt": 1, "error.message": "GEMINI_API_KEY=supersecretvalue99"},
        )
        handler.emit(record)
        handler.close()

        files = list(tmp_path.glob("*.jsonl"))
        assert len(files) == 1
        entry = json.loads(files[0].read_text().strip())
        assert entry["level"] == "INFO"
        assert entry["component"] == "llm"
        assert entry["message"] == "retry_attempt"
        assert entry["extra"]["attempt"] == 1
        assert "supersecretvalue99" not in entry["extra"]["error.message"]


class TestComponentFormatter:
    def test_component_name(self):
        formatter = ComponentFormatter("%(component)s | %(message)s")
        record = logging.LogRecord(
            "glance.images.screenshot", logging.INFO, __file__, 1, "hello", None, None
        )
        assert formatter.format(record) == "images | hello"

    def test_foreign_logger(self):
        formatter = ComponentFormatter("%(component)s")
        record = logging.LogRecord("uvicorn.error", logging.INFO, __file__, 1, "x", None, None)
        assert formatter.format(record) == "uvicorn"


class TestPruneOldLogs:
    def test_prunes_only_old_files(self, tmp_path):
        old = tmp_path / "2020-01-01.jsonl"
        recent = tmp_path / "recent.jsonl"
        other = tmp_path / "notes.txt"
        for path in (old, recent, other):
            path.write_text("{}\n")

        ten_days_ago = time.time() - 10 * 86400
        os.utime(old, (ten_days_ago, ten_days_ago))
        os.utime(other, (ten_days_ago, ten_days_ago))

        assert prune_old_logs(tmp_path, retention_days=7) == 1
        assert not old.exists()
        assert recent.exists()
        assert other.exists()

    def test_missing_directory(self, tmp_path):
        assert prune_old_logs(tmp_path / "missing") == 0
