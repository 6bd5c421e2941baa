"""Minimal Jira REST transport.

``JiraRestClient.send`` executes one JSON request against the Jira Cloud REST
API and classifies the response:

- 2xx with an empty body -> ``None``
- 2xx with JSON           -> the decoded value
- 2xx with anything else  -> ``RawBody`` (logged as a warning, never raised)
- 429 / network failure   -> retried with exponential backoff
- any other status        -> ``RemoteError`` straight away
"""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from typing import Any

import requests

from .errors import DeadlineExceededError, RateLimitError, RemoteError
from .logging import StructuredLogger, get_logger
from .retry import (
    DEFAULT_BASE_DELAY,
    DEFAULT_RETRIES,
    Deadline,
    RetryConfig,
    attempt_schedule,
    backoff_sleep,
    compute_sleep,
    parse_retry_after,
)

USER_AGENT = "jira-story-action/0.2.0"
ALLOWED_METHODS = frozenset({"GET", "POST", "PUT"})
HTTP_OK_MIN = 200
HTTP_OK_MAX = 299
HTTP_TOO_MANY_REQUESTS = 429
DEFAULT_TIMEOUT = 30.0


class RawBody(str):
    """Text of a 2xx response that could not be decoded as JSON."""


def basic_auth_header(email: str, token: str) -> str:
    raw = f"{email}:{token}".encode("utf-8")
    return "Basic " + base64.b64encode(raw).decode("ascii")


@dataclass
class JiraRestClient:
    """Authenticated JSON transport bound to a single Jira site."""

    base_url: str
    email: str
    token: str = field(repr=False)
    retries: int = DEFAULT_RETRIES
    delay: float = DEFAULT_BASE_DELAY
    timeout: float = DEFAULT_TIMEOUT
    deadline: Deadline | None = None
    session: requests.Session | None = None
    logger: StructuredLogger | None = None
    _session: requests.Session = field(init=False, repr=False)
    _log: StructuredLogger = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._session = self.session or requests.Session()
        self._session.headers.update(
            {
                "Authorization": basic_auth_header(self.email, self.token),
                "Content-Type": "application/json",
                "Accept": "application/json",
                "User-Agent": USER_AGENT,
            }
        )
        self._log = self.logger or get_logger()
        self._log.add_secret(self.token)
        self._log.add_secret(self._session.headers["Authorization"].split(" ", 1)[1])

    def url_for(self, path: str) -> str:
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"

    def send(
        self,
        method: str,
        path: str,
        *,
        body: Any | None = None,
        retries: int | None = None,
        delay: float | None = None,
    ) -> Any:
        method = method.upper()
        if method not in ALLOWED_METHODS:
            raise ValueError(f"Unsupported HTTP method: {method}")
        url = self.url_for(path)
        cfg = RetryConfig(
            retries=self.retries if retries is None else retries,
            base_delay=self.delay if delay is None else delay,
        )

        for retries_left, wait in attempt_schedule(cfg):
            timeout = self._request_timeout(method, path)
            self._log.debug(f"Sending {method} request to {path}", method=method, path=path)
            try:
                response = self._session.request(
                    method,
                    url,
                    json=body,
                    headers=self._session.headers,
                    timeout=timeout,
                )
            except requests.RequestException as exc:
                self._log.error(f"Request error: {exc}", method=method, path=path)
                if retries_left <= 0:
                    raise
                self._wait(wait, None, method, path, retries_left, reason=type(exc).__name__)
                continue

            status = response.status_code
            text = response.text or ""
            self._log.debug(f"Response status: {status}", method=method, path=path, status=status)
            self._log.debug(f"Raw response: {text}", method=method, path=path)

            if HTTP_OK_MIN <= status <= HTTP_OK_MAX:
                return self._decode(response, text, method, path)
            if status == HTTP_TOO_MANY_REQUESTS:
                if retries_left <= 0:
                    raise RateLimitError(
                        f"HTTP {status}: {text}", status=status, response_text=text
                    )
                retry_after = parse_retry_after(response.headers.get("Retry-After"))
                self._wait(wait, retry_after, method, path, retries_left, reason="rate limited")
                continue
            raise RemoteError(f"HTTP {status}: {text}", status=status, response_text=text)

        raise RuntimeError("retry loop exited unexpectedly")  # pragma: no cover

    def _request_timeout(self, method: str, path: str) -> float:
        """Per-request timeout, shortened to what is left of the run deadline."""
        if self.deadline is None:
            return self.timeout
        remaining = self.deadline.remaining()
        if remaining is None:
            return self.timeout
        if self.deadline.expired():
            raise DeadlineExceededError(
                f"Run deadline of {self.deadline.seconds:g}s exceeded before {method} {path}"
            )
        return min(self.timeout, remaining)

    def _decode(self, response: requests.Response, text: str, method: str, path: str) -> Any:
        if not text.strip():
            return None
        try:
            return response.json()
        except ValueError as exc:
            self._log.warning(f"Failed to parse JSON response: {exc}", method=method, path=path)
            self._log.warning(f"Raw response: {text}", method=method, path=path)
            return RawBody(text)

    def _wait(
        self,
        delay: float,
        retry_after: float | None,
        method: str,
        path: str,
        retries_left: int,
        *,
        reason: str,
    ) -> None:
        sleep_for = compute_sleep(delay, retry_after)
        self._log.warning(
            f"[retry] {method} {path} {reason}, {retries_left} retries left, "
            f"sleeping {sleep_for:.2f}s",
            method=method,
            path=path,
            retries_left=retries_left,
        )
        backoff_sleep(sleep_for, self.deadline)


__all__ = [
    "JiraRestClient",
    "RawBody",
    "basic_auth_header",
    "ALLOWED_METHODS",
    "USER_AGENT",
]
