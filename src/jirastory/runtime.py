"""Top-level run boundary for the action.

``execute`` is the only place that turns an exception into a failed run:
everything below it logs context and re-raises.
"""

from __future__ import annotations

import time
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import requests

from .config import ActionConfig, load_config
from .env_inputs import ActionEnvironment
from .errors import classify_error
from .jira_rest import JiraRestClient
from .logging import FORMAT_ACTIONS, FORMAT_TEXT, StructuredLogger, configure_logging
from .retry import Deadline
from .workflow import UpsertResult, upsert_story

FAILURE_PREFIX = "Failed to create or update Jira issue"


def build_client(
    cfg: ActionConfig,
    logger: StructuredLogger,
    session: requests.Session | None = None,
) -> JiraRestClient:
    return JiraRestClient(
        base_url=cfg.base_url,
        email=cfg.user_email,
        token=cfg.api_token,
        retries=cfg.retry_count,
        delay=cfg.retry_delay,
        timeout=cfg.request_timeout,
        deadline=Deadline(cfg.deadline),
        session=session,
        logger=logger,
    )


def publish_result(env: ActionEnvironment, result: UpsertResult) -> None:
    env.set_output("issue_key", result.issue_key)
    env.set_output("action", result.action)


def execute(
    inputs: Mapping[str, Any],
    *,
    env: ActionEnvironment,
    config_file: str | Path | None = None,
    session: requests.Session | None = None,
) -> int:
    """Run one upsert and return the process exit code."""
    start = time.monotonic()
    default_format = FORMAT_ACTIONS if env.is_github_actions() else FORMAT_TEXT
    logger = configure_logging(fmt=str(inputs.get("log_format") or default_format))
    secrets: tuple[str, ...] = ()
    try:
        cfg = load_config(inputs, config_file=config_file)
        logger = configure_logging(fmt=cfg.log_format or default_format, level=cfg.log_level)
        logger.add_secret(cfg.api_token)
        secrets = logger.secrets
        client = build_client(cfg, logger, session)
        with logger.timed_operation("upsert", project_key=cfg.project_key, dry_run=cfg.dry_run):
            result = upsert_story(client, cfg, logger=logger)
        publish_result(env, result)
    except Exception as exc:
        info = classify_error(exc, secrets)
        logger.log_error(
            f"{FAILURE_PREFIX}: {info.message}",
            error=info.category,
            error_type=info.original_type,
            transient=info.transient,
            duration_ms=round((time.monotonic() - start) * 1000, 2),
        )
        return 1
    logger.log_operation(
        "run_complete",
        issue_key=result.issue_key,
        action=result.action,
        duration_ms=round((time.monotonic() - start) * 1000, 2),
    )
    return 0


__all__ = ["execute", "build_client", "publish_result", "FAILURE_PREFIX"]
