"""Structured logging for jirastory.

Three renderings share one ``StructuredLogger``: plain text for local runs,
JSON lines for log shippers, and GitHub workflow commands (``::warning::``
etc.) when running as an Actions step so severities surface as annotations.
"""

from __future__ import annotations

import json
import logging
import sys
import time
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any

from .errors import redact

FORMAT_TEXT = "text"
FORMAT_JSON = "json"
FORMAT_ACTIONS = "actions"

_RESERVED = {
    "name",
    "msg",
    "args",
    "levelname",
    "levelno",
    "pathname",
    "filename",
    "module",
    "lineno",
    "exc_info",
    "exc_text",
    "stack_info",
    "funcName",
    "created",
    "msecs",
    "relativeCreated",
    "thread",
    "threadName",
    "processName",
    "process",
    "taskName",
}


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for k, v in record.__dict__.items():
            if k not in _RESERVED and not k.startswith("_") and k not in entry:
                entry[k] = v
        return json.dumps(entry, default=str)


def _escape_command_data(value: str) -> str:
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


class WorkflowCommandFormatter(logging.Formatter):
    """Render records as GitHub Actions workflow commands.

    INFO stays plain text; DEBUG/WARNING/ERROR map onto ``::debug::``,
    ``::warning::`` and ``::error::``. CRITICAL is reported as an error.
    """

    _COMMANDS = {
        logging.DEBUG: "debug",
        logging.WARNING: "warning",
        logging.ERROR: "error",
        logging.CRITICAL: "error",
    }

    def format(self, record: logging.LogRecord) -> str:  # noqa: D401
        message = record.getMessage()
        command = self._COMMANDS.get(record.levelno)
        if command is None:
            return message
        return f"::{command}::{_escape_command_data(message)}"


class RedactingFilter(logging.Filter):
    """Mask registered secrets in the fully rendered message."""

    def __init__(self) -> None:
        super().__init__()
        self.secrets: list[str] = []

    def filter(self, record: logging.LogRecord) -> bool:
        rendered = record.getMessage()
        cleaned = redact(rendered, tuple(self.secrets))
        if cleaned != rendered:
            record.msg = cleaned
            record.args = None
        return True


def _build_formatter(fmt: str) -> logging.Formatter:
    if fmt == FORMAT_JSON:
        return JSONFormatter()
    if fmt == FORMAT_ACTIONS:
        return WorkflowCommandFormatter()
    return logging.Formatter("%(asctime)s %(levelname)s %(message)s")


class StructuredLogger:
    def __init__(
        self, name: str = "jirastory", fmt: str = FORMAT_TEXT, level: str = "INFO"
    ) -> None:
        self._logger = logging.getLogger(name)
        self._logger.setLevel(getattr(logging, level.upper(), logging.INFO))
        for h in list(self._logger.handlers):
            self._logger.removeHandler(h)
        for f in list(self._logger.filters):
            self._logger.removeFilter(f)
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(_build_formatter(fmt))
        self._logger.addHandler(handler)
        self._logger.propagate = False
        self._redactor = RedactingFilter()
        self._logger.addFilter(self._redactor)
        self.fmt = fmt

    def add_secret(self, value: str | None) -> None:
        """Register a value that must never appear in log output."""
        if not value or value in self._redactor.secrets:
            return
        self._redactor.secrets.append(value)
        if self.fmt == FORMAT_ACTIONS:
            # the runner masks it in every later line, including other steps
            print(f"::add-mask::{_escape_command_data(value)}", file=sys.stdout)

    @property
    def secrets(self) -> tuple[str, ...]:
        return tuple(self._redactor.secrets)

    def log_operation(self, operation: str, **kw: Any) -> None:
        extra = {"operation": operation, **kw}
        self._logger.info(f"Operation: {operation}", extra=extra)

    def log_issue_action(
        self,
        action: str,
        issue_key: str | None,
        dry_run: bool = False,
        **kw: Any,
    ) -> None:
        extra: dict[str, Any] = {
            "operation": f"issue_{action}",
            "issue_key": issue_key,
            "dry_run": dry_run,
            **kw,
        }
        msg = f"issue {action} {issue_key or '<new>'}" + (" [DRY]" if dry_run else "")
        self._logger.info(msg, extra=extra)

    def log_performance(self, operation: str, duration_ms: float, **kw: Any) -> None:
        extra = {"operation": operation, "duration_ms": round(duration_ms, 2), **kw}
        self._logger.debug(
            f"Performance: {operation} completed in {duration_ms:.2f}ms", extra=extra
        )

    def log_error(self, message: str, error: str | None = None, **kw: Any) -> None:
        extra = dict(kw)
        if error:
            extra["error"] = error
        self._logger.error(message, extra=extra)

    def debug(self, message: str, **kw: Any) -> None:
        self._logger.debug(message, extra=kw)

    def info(self, message: str, **kw: Any) -> None:
        self._logger.info(message, extra=kw)

    def warning(self, message: str, **kw: Any) -> None:
        self._logger.warning(message, extra=kw)

    def error(self, message: str, **kw: Any) -> None:  # noqa: D401
        self._logger.error(message, extra=kw)

    @contextmanager
    def timed_operation(self, operation: str, **kw: Any) -> Iterator[None]:  # noqa: D401
        start = time.perf_counter()
        self.log_operation(f"{operation}_start", **kw)
        try:
            yield
            self.log_performance(operation, (time.perf_counter() - start) * 1000, **kw)
        except Exception as exc:
            self.debug(f"operation {operation} failed: {exc}", **kw)
            raise


_GLOBAL: StructuredLogger | None = None


def get_logger() -> StructuredLogger:
    global _GLOBAL  # noqa: PLW0603
    if _GLOBAL is None:
        _GLOBAL = StructuredLogger()
    return _GLOBAL


def configure_logging(fmt: str = FORMAT_TEXT, level: str = "INFO") -> StructuredLogger:
    global _GLOBAL  # noqa: PLW0603
    _GLOBAL = StructuredLogger(fmt=fmt, level=level)
    return _GLOBAL
