"""Error taxonomy & redaction helpers.

Every failure the action can hit maps onto one of the classes below so the
runtime boundary can report it consistently:

- ConfigurationError       missing / invalid input, raised before any network call
- NotFoundError            a named remote entity (sprint) does not exist
- TransientTransportError  rate limiting or network failure after the retry budget
- RemoteError              any other non-2xx response (status + body attached)

``classify_error`` turns an arbitrary exception into an ``ErrorInfo`` and
``redact`` scrubs credentials before anything reaches the log.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

import requests

_SENSITIVE_PATTERNS: list[re.Pattern[str]] = [
    re.compile(r"Authorization:\s*(?:Basic|Bearer)\s+\S+", re.IGNORECASE),
    re.compile(r"ATATT[A-Za-z0-9_=-]{20,}"),  # Atlassian API tokens
    re.compile(r"ATCTT[A-Za-z0-9_=-]{20,}"),  # Atlassian connect tokens
]

_REDACTION_PLACEHOLDER = "<redacted>"


class JiraStoryError(RuntimeError):
    """Base class for all errors raised by jirastory."""


class ConfigurationError(JiraStoryError):
    def __init__(self, message: str, *, key: str | None = None):
        super().__init__(message)
        self.key = key


class NotFoundError(JiraStoryError):
    pass


class SprintNotFoundError(NotFoundError):
    def __init__(self, sprint_name: str, board_id: str | None = None):
        super().__init__(f'Sprint "{sprint_name}" not found')
        self.sprint_name = sprint_name
        self.board_id = board_id


class RemoteError(JiraStoryError):
    """Raised when Jira answers with a non-2xx status."""

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        response_text: str | None = None,
    ):
        super().__init__(message)
        self.status = status
        self.response_text = response_text


class UnexpectedResponseError(RemoteError):
    """A 2xx response whose body does not have the expected shape."""


class TransientTransportError(JiraStoryError):
    pass


class RateLimitError(TransientTransportError):
    def __init__(self, message: str, *, status: int = 429, response_text: str | None = None):
        super().__init__(message)
        self.status = status
        self.response_text = response_text


class DeadlineExceededError(TransientTransportError):
    pass


@dataclass
class ErrorInfo:
    category: str
    message: str
    original_type: str
    transient: bool = False
    details: dict[str, Any] | None = None


def redact(text: str, secrets: tuple[str, ...] = ()) -> str:
    """Redact credentials in arbitrary text.

    ``secrets`` lets callers mask the exact token they hold in addition to the
    generic patterns (short tokens would not match those).
    """
    if not text:
        return text
    redacted = text
    for secret in secrets:
        if secret:
            redacted = redacted.replace(secret, _REDACTION_PLACEHOLDER)
    for pat in _SENSITIVE_PATTERNS:
        redacted = pat.sub(_REDACTION_PLACEHOLDER, redacted)
    return redacted


def classify_error(exc: BaseException, secrets: tuple[str, ...] = ()) -> ErrorInfo:
    """Best-effort classification of an exception for reporting."""
    msg = redact(str(exc) if exc else "", secrets)
    name = exc.__class__.__name__

    if isinstance(exc, ConfigurationError):
        return ErrorInfo("config", msg, name, details={"key": exc.key} if exc.key else None)
    if isinstance(exc, NotFoundError):
        return ErrorInfo("not_found", msg, name)
    if isinstance(exc, RateLimitError):
        return ErrorInfo("jira.rate_limit", msg, name, transient=True, details={"status": exc.status})
    if isinstance(exc, DeadlineExceededError):
        return ErrorInfo("deadline", msg, name, transient=True)
    if isinstance(exc, (TransientTransportError, requests.RequestException)):
        return ErrorInfo("network", msg, name, transient=True)
    if isinstance(exc, RemoteError):
        return ErrorInfo("jira.remote", msg, name, details={"status": exc.status})
    return ErrorInfo("generic", msg, name)


__all__ = [
    "JiraStoryError",
    "ConfigurationError",
    "NotFoundError",
    "SprintNotFoundError",
    "RemoteError",
    "UnexpectedResponseError",
    "TransientTransportError",
    "RateLimitError",
    "DeadlineExceededError",
    "ErrorInfo",
    "classify_error",
    "redact",
]
