from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, cast

import yaml

from .errors import ConfigurationError
from .logging import FORMAT_ACTIONS, FORMAT_JSON, FORMAT_TEXT
from .retry import DEFAULT_BASE_DELAY, DEFAULT_RETRIES

REQUIRED_INPUTS = (
    "jira_base_url",
    "jira_user_email",
    "jira_api_token",
    "jira_project_key",
    "issue_summary",
    "issue_description",
    "board_id",
    "sprint_name",
)
OPTIONAL_INPUTS = (
    "retry_count",
    "retry_delay",
    "request_timeout",
    "deadline",
    "dry_run",
    "log_format",
    "log_level",
)
KNOWN_INPUTS = REQUIRED_INPUTS + OPTIONAL_INPUTS

DEFAULT_REQUEST_TIMEOUT = 30.0
DEFAULT_DEADLINE = 300.0
LOG_FORMATS = (FORMAT_TEXT, FORMAT_JSON, FORMAT_ACTIONS)
_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class ActionConfig:
    base_url: str
    user_email: str
    api_token: str = field(repr=False)
    project_key: str
    issue_summary: str
    issue_description: str
    board_id: str
    sprint_name: str
    retry_count: int = DEFAULT_RETRIES
    # Transport / run behaviour
    retry_delay: float = DEFAULT_BASE_DELAY
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    deadline: float | None = DEFAULT_DEADLINE
    dry_run: bool = False
    # Logging configuration
    log_format: str | None = None  # None: chosen from the environment at run time
    log_level: str = "INFO"


def _clean(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value).strip()


def _parse_int(name: str, raw: str, default: int, *, minimum: int = 0) -> int:
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"Invalid integer for {name}: {raw!r}", key=name) from exc
    if value < minimum:
        raise ConfigurationError(f"{name} must be >= {minimum}, got {value}", key=name)
    return value


def _parse_float(name: str, raw: str, default: float | None) -> float | None:
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"Invalid number for {name}: {raw!r}", key=name) from exc
    if value < 0:
        raise ConfigurationError(f"{name} must not be negative, got {raw}", key=name)
    return value


def _parse_bool(name: str, raw: str) -> bool:
    low = raw.lower()
    if low in _TRUE:
        return True
    if low in _FALSE:
        return False
    raise ConfigurationError(f"Invalid boolean for {name}: {raw!r}", key=name)


def read_config_file(path: str | Path) -> dict[str, Any]:
    """Read optional YAML defaults; keys use the action input names."""
    p = Path(path)
    if not p.exists():
        raise ConfigurationError(f"Configuration file not found: {p}")
    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"Invalid YAML in {p}: {exc}") from exc
    if not isinstance(raw, dict):
        raise ConfigurationError(f"Configuration file {p} must contain a mapping")
    unknown = sorted(set(raw) - set(KNOWN_INPUTS))
    if unknown:
        raise ConfigurationError(f"Unknown keys in {p}: {', '.join(unknown)}")
    return cast(dict[str, Any], raw)


def load_config(
    inputs: Mapping[str, Any], *, config_file: str | Path | None = None
) -> ActionConfig:
    """Validate raw inputs and build the run's ``ActionConfig``.

    ``inputs`` wins over values from ``config_file``. The first missing
    required input raises ``ConfigurationError`` naming it.
    """
    merged: dict[str, Any] = dict(read_config_file(config_file)) if config_file else {}
    for key, value in inputs.items():
        if _clean(value):
            merged[key] = value
    values = {key: _clean(merged.get(key)) for key in KNOWN_INPUTS}

    for key in REQUIRED_INPUTS:
        if not values[key]:
            raise ConfigurationError(f"Missing required input: {key}", key=key)

    base_url = values["jira_base_url"]
    if not base_url.startswith(("https://", "http://")):
        raise ConfigurationError(
            f"jira_base_url must be an http(s) URL, got {base_url!r}", key="jira_base_url"
        )
    log_format = values["log_format"].lower() or None
    if log_format is not None and log_format not in LOG_FORMATS:
        raise ConfigurationError(
            f"log_format must be one of {', '.join(LOG_FORMATS)}", key="log_format"
        )
    deadline = _parse_float("deadline", values["deadline"], DEFAULT_DEADLINE)

    return ActionConfig(
        base_url=base_url.rstrip("/"),
        user_email=values["jira_user_email"],
        api_token=values["jira_api_token"],
        project_key=values["jira_project_key"],
        issue_summary=values["issue_summary"],
        issue_description=values["issue_description"],
        board_id=values["board_id"],
        sprint_name=values["sprint_name"],
        retry_count=_parse_int("retry_count", values["retry_count"], DEFAULT_RETRIES),
        retry_delay=cast(
            float, _parse_float("retry_delay", values["retry_delay"], DEFAULT_BASE_DELAY)
        ),
        request_timeout=cast(
            float,
            _parse_float("request_timeout", values["request_timeout"], DEFAULT_REQUEST_TIMEOUT),
        ),
        # 0 disables the overall deadline
        deadline=deadline or None,
        dry_run=_parse_bool("dry_run", values["dry_run"]),
        log_format=log_format,
        log_level=(values["log_level"] or "INFO").upper(),
    )


__all__ = [
    "ActionConfig",
    "REQUIRED_INPUTS",
    "OPTIONAL_INPUTS",
    "KNOWN_INPUTS",
    "load_config",
    "read_config_file",
]
