"""Centralized logging configuration for Glance.

Entry points (CLI, server) call configure_logging() once, early.

Logging Levels:
- DEBUG: Image sizes, model call parameters
- INFO: Request outcomes, retry attempts, screenshots
- WARNING: Retry exhaustion, acquisition failures
- ERROR: Unexpected failures
"""

import json
import logging
import os
import re
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import TextIO

DEFAULT_LOG_RETENTION_DAYS = 7

DEFAULT_REDACT_PATTERNS: list[str] = [
    # Google API keys (Gemini)
    r"\b(AIza[0-9A-Za-z\-_]{20,})\b",
    # OpenAI keys
    r"\b(sk-[A-Za-z0-9_-]{20,})\b",
    # ENV-style assignments: GEMINI_API_KEY=secret
    r"\b[A-Z0-9_]+(?:KEY|TOKEN|SECRET|PASSWORD)\s*[=:]\s*([^\s\"']{8,})",
    # Bearer tokens in headers
    r"\bBearer\s+([A-Za-z0-9._\-+=]{20,})\b",
    # key= query parameters
    r"[?&]key=([A-Za-z0-9_\-]{12,})",
]

# Fields attached with ``extra=`` that the JSONL handler copies out of records.
_RESERVED_RECORD_ATTRS = set(
    logging.LogRecord("", 0, "", 0, "", None, None).__dict__
) | {"message", "asctime", "component"}


@dataclass
class SecretRedactor:
    """Masks API keys and tokens, keeping the first and last 4 characters."""

    patterns: list[re.Pattern[str]] = field(default_factory=list)
    enabled: bool = True

    def __post_init__(self) -> None:
        if not self.patterns:
            self.patterns = [
                re.compile(p, re.IGNORECASE) for p in DEFAULT_REDACT_PATTERNS
            ]

    def redact(self, text: str) -> str:
        if not self.enabled or not text:
            return text
        result = text
        for pattern in self.patterns:
            result = pattern.sub(self._mask_match, result)
        return result

    def _mask_match(self, match: re.Match[str]) -> str:
        full = match.group(0)
        token = match.group(1) if match.lastindex else full
        if "..." in token:
            return full
        if len(token) < 12:
            return full.replace(token, "***")
        return full.replace(token, f"{token[:4]}...{token[-4:]}")


_redactor = SecretRedactor()


def prune_old_logs(
    logs_dir: Path,
    retention_days: int = DEFAULT_LOG_RETENTION_DAYS,
    suffix: str = ".jsonl",
) -> int:
    """Delete log files older than the retention period.

    Returns:
        Number of files deleted.
    """
    if not logs_dir.exists():
        return 0

    cutoff = datetime.now(UTC) - timedelta(days=retention_days)
    deleted = 0
    for entry in logs_dir.iterdir():
        if not entry.is_file() or not entry.name.endswith(suffix):
            continue
        try:
            if datetime.fromtimestamp(entry.stat().st_mtime, UTC) < cutoff:
                entry.unlink()
                deleted += 1
        except OSError:
            continue
    return deleted


def _component(logger_name: str) -> str:
    parts = logger_name.split(".")
    if len(parts) >= 2 and parts[0] == "glance":
        return parts[1]
    return parts[0]


class JSONLHandler(logging.Handler):
    """Writes one redacted JSON object per record to a daily file.

    Files are named YYYY-MM-DD.jsonl; old files are pruned on rotation.
    """

    def __init__(
        self,
        logs_dir: Path,
        retention_days: int = DEFAULT_LOG_RETENTION_DAYS,
    ):
        super().__init__()
        self._logs_dir = logs_dir
        self._logs_dir.mkdir(parents=True, exist_ok=True)
        self._retention_days = retention_days
        self._current_date: str | None = None
        self._file: TextIO | None = None

    def _get_log_file(self) -> TextIO:
        today = datetime.now(UTC).strftime("%Y-%m-%d")
        if self._current_date != today or self._file is None:
            if self._file:
                self._file.close()
            self._current_date = today
            self._file = (self._logs_dir / f"{today}.jsonl").open("a", encoding="utf-8")
            prune_old_logs(self._logs_dir, self._retention_days)
        return self._file

    def emit(self, record: logging.LogRecord) -> None:
        try:
            entry = {
                "ts": datetime.now(UTC).isoformat(),
                "level": record.levelname,
                "component": _component(record.name),
                "logger": record.name,
                "message": _redactor.redact(record.getMessage()),
            }

            if record.exc_info:
                formatter = self.formatter or logging.Formatter()
                entry["exception"] = _redactor.redact(
                    formatter.formatException(record.exc_info)
                )

            extra = {
                key: value
                for key, value in record.__dict__.items()
                if key not in _RESERVED_RECORD_ATTRS and not key.startswith("_")
            }
            if extra:
                redacted = _redactor.redact(json.dumps(extra, default=str))
                try:
                    entry["extra"] = json.loads(redacted)
                except json.JSONDecodeError:
                    entry["extra"] = {"_redacted_raw": redacted}

            log_file = self._get_log_file()
            log_file.write(json.dumps(entry) + "\n")
            log_file.flush()
        except Exception:
            self.handleError(record)

    def close(self) -> None:
        if self._file:
            self._file.close()
            self._file = None
        super().close()


class ComponentFormatter(logging.Formatter):
    """Formatter that shortens logger names to a component.

    - glance.images.screenshot -> images
    - glance.llm.retry -> llm
    """

    def format(self, record: logging.LogRecord) -> str:
        record.component = _component(record.name)
        return super().format(record)


NOISY_LOGGERS = [
    "httpx",
    "httpcore",
    "uvicorn.access",
    "google_genai",
    "openai",
]


def configure_logging(
    level: str | None = None,
    use_rich: bool = False,
    log_to_file: bool = False,
) -> None:
    """Configure logging for Glance.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR).
            If None, uses GLANCE_LOG_LEVEL env var or INFO.
        use_rich: Use Rich handler for colorful output (server mode).
        log_to_file: Also write logs to JSONL files in ~/.glance/logs/.
    """
    from glance.config.paths import get_logs_path

    if level is None:
        level = os.environ.get("GLANCE_LOG_LEVEL", "INFO").upper()
    level = level.upper()
    if level not in ("DEBUG", "INFO", "WARNING", "ERROR"):
        level = "INFO"
    log_level = getattr(logging, level)

    handlers: list[logging.Handler] = []

    if use_rich:
        from rich.logging import RichHandler

        console_handler: logging.Handler = RichHandler(
            rich_tracebacks=False,
            show_path=False,
            show_time=True,
            markup=False,
        )
        console_handler.setFormatter(ComponentFormatter("%(component)s | %(message)s"))
    else:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(
            logging.Formatter(
                "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
                datefmt="%H:%M:%S",
            )
        )
    handlers.append(console_handler)

    if log_to_file:
        file_handler = JSONLHandler(get_logs_path())
        file_handler.setLevel(log_level)
        handlers.append(file_handler)

    logging.basicConfig(level=log_level, handlers=handlers, force=True)

    for logger_name in NOISY_LOGGERS:
        logging.getLogger(logger_name).setLevel(logging.WARNING)

    if use_rich:
        for logger_name in ("uvicorn", "uvicorn.error"):
            uv_logger = logging.getLogger(logger_name)
            uv_logger.handlers = handlers
            uv_logger.propagate = False
