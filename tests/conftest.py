"""Pytest configuration for jirastory tests.

Ensures the in-repo ``src`` directory is on ``sys.path`` so the package can be
imported without an editable install, and provides a scripted stand-in for
``requests.Session`` so no test ever talks to a real Jira site.
"""

from __future__ import annotations

import json
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
import requests

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))


class FakeResponse:
    def __init__(
        self,
        status_code: int,
        payload: Any = None,
        *,
        headers: dict[str, str] | None = None,
    ):
        self.status_code = status_code
        self.payload = payload
        self.headers = headers or {}

    @property
    def text(self) -> str:
        if self.payload is None:
            return ""
        if isinstance(self.payload, (dict, list)):
            return json.dumps(self.payload)
        return str(self.payload)

    def json(self) -> Any:
        return json.loads(self.text)


class FakeSession:
    """Returns queued responses (or raises queued exceptions) in order."""

    def __init__(self, responses: list[FakeResponse | Exception]):
        self._responses = list(responses)
        self.headers: dict[str, str] = {}
        self.request_log: list[dict[str, Any]] = []

    def request(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str],
        json: Any | None = None,
        timeout: float | None = None,
    ) -> FakeResponse:
        self.request_log.append(
            {"method": method, "url": url, "json": json, "headers": dict(headers), "timeout": timeout}
        )
        if not self._responses:
            raise AssertionError(f"No response queued for {method} {url}")
        nxt = self._responses.pop(0)
        if isinstance(nxt, Exception):
            raise nxt
        return nxt

    @property
    def calls(self) -> list[tuple[str, str]]:
        return [(entry["method"], entry["url"]) for entry in self.request_log]


@pytest.fixture
def fake_session() -> Callable[..., FakeSession]:
    def _make(*responses: FakeResponse | Exception) -> FakeSession:
        return FakeSession(list(responses))

    return _make


@pytest.fixture
def response() -> type[FakeResponse]:
    return FakeResponse


@pytest.fixture
def sleeps(monkeypatch: pytest.MonkeyPatch) -> list[float]:
    """Record backoff sleeps instead of waiting."""
    import time

    recorded: list[float] = []
    monkeypatch.setattr(time, "sleep", lambda sec: recorded.append(sec))
    return recorded


@pytest.fixture
def connection_error() -> requests.ConnectionError:
    return requests.ConnectionError("Failed to establish a new connection")


@pytest.fixture(autouse=True)
def _fresh_global_logger(monkeypatch: pytest.MonkeyPatch) -> None:
    """Each test gets a global logger bound to its own captured stdout."""
    import jirastory.logging

    monkeypatch.setattr(jirastory.logging, "_GLOBAL", None)
