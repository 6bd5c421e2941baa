"""Retry / backoff helpers for Jira requests.

The transport retries rate-limited (HTTP 429) and network-level failures with
plain exponential backoff: the first retry waits ``base_delay`` seconds and
every further retry doubles the wait (1s, 2s, 4s with the defaults).

Environment overrides:
  JIRA_STORY_RETRY_MAX_SLEEP (cap in seconds for a single wait, unset = no cap)

A ``Deadline`` bounds the whole run; a wait that would overshoot it raises
``DeadlineExceededError`` instead of sleeping.
"""

from __future__ import annotations

import os
import re
import time
from collections.abc import Iterator
from dataclasses import dataclass

from .errors import DeadlineExceededError

DEFAULT_RETRIES = 3
DEFAULT_BASE_DELAY = 1.0

_RE_SECONDS = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*$")


@dataclass(frozen=True)
class RetryConfig:
    retries: int = DEFAULT_RETRIES
    base_delay: float = DEFAULT_BASE_DELAY


class Deadline:
    """Monotonic wall for the whole run. ``seconds=None`` never expires."""

    def __init__(self, seconds: float | None = None) -> None:
        self.seconds = seconds if seconds and seconds > 0 else None
        self._expires_at = (
            time.monotonic() + self.seconds if self.seconds is not None else None
        )

    def remaining(self) -> float | None:
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - time.monotonic())

    def expired(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= 0


def attempt_schedule(cfg: RetryConfig) -> Iterator[tuple[int, float]]:
    """Yield ``(retries_left, delay)`` pairs, one per attempt.

    ``delay`` is the wait to apply *after* that attempt if it has to be
    retried. The last pair has ``retries_left == 0``.
    """
    retries = max(0, cfg.retries)
    delay = max(0.0, cfg.base_delay)
    for retries_left in range(retries, -1, -1):
        yield retries_left, delay
        delay *= 2


def parse_retry_after(value: str | None) -> float | None:
    """Parse a ``Retry-After`` header given in seconds. HTTP dates are ignored."""
    if not value:
        return None
    m = _RE_SECONDS.match(value)
    if not m:
        return None
    seconds = float(m.group(1))
    return seconds if seconds > 0 else None


def compute_sleep(delay: float, retry_after: float | None = None) -> float:
    sleep_for = max(delay, retry_after or 0.0)
    max_cap_env = os.environ.get("JIRA_STORY_RETRY_MAX_SLEEP")
    if max_cap_env:
        try:
            cap = float(max_cap_env)
        except ValueError:
            return sleep_for
        if cap >= 0:
            sleep_for = min(sleep_for, cap)
    return sleep_for


def backoff_sleep(seconds: float, deadline: Deadline | None = None) -> None:
    if deadline is not None:
        remaining = deadline.remaining()
        if remaining is not None and seconds > remaining:
            raise DeadlineExceededError(
                f"Run deadline of {deadline.seconds:g}s exceeded while backing off "
                f"({seconds:.2f}s requested, {remaining:.2f}s left)"
            )
    time.sleep(seconds)


__all__ = [
    "DEFAULT_RETRIES",
    "DEFAULT_BASE_DELAY",
    "RetryConfig",
    "Deadline",
    "attempt_schedule",
    "parse_retry_after",
    "compute_sleep",
    "backoff_sleep",
]
