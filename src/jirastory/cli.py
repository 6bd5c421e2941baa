"""jira-story CLI.

Runs the create-or-update workflow once. Inputs come from (lowest precedence
first) ``--config`` YAML, ``.env``, ``INPUT_*`` / ``JIRA_STORY_*`` environment
variables and the flags below. The API token has no flag so it never
shows up in process listings; set ``INPUT_JIRA_API_TOKEN`` or
``JIRA_STORY_JIRA_API_TOKEN``. Exit status is 0 on success and 1 on failure.
"""

from __future__ import annotations

import argparse
from collections.abc import Sequence
from typing import Any

from jirastory import __version__
from jirastory.config import LOG_FORMATS
from jirastory.env_inputs import ActionEnvironment, EnvInputsConfig
from jirastory.runtime import execute

_MAX_HELP_WIDTH = 100

# flag -> input name
_INPUT_FLAGS: tuple[tuple[str, str, str], ...] = (
    ("--base-url", "jira_base_url", "Jira site, e.g. https://acme.atlassian.net"),
    ("--email", "jira_user_email", "Account email used for basic auth"),
    ("--project", "jira_project_key", "Project key, e.g. PROJ"),
    ("--summary", "issue_summary", "Issue summary used to find an existing story"),
    ("--description", "issue_description", "Issue description"),
    ("--board-id", "board_id", "Agile board holding the sprint"),
    ("--sprint", "sprint_name", "Exact name of a future sprint"),
    ("--retry-count", "retry_count", "Retries for rate limits / network errors (default 3)"),
    ("--retry-delay", "retry_delay", "Initial backoff in seconds, doubled per retry (default 1)"),
    ("--request-timeout", "request_timeout", "Per-request timeout in seconds (default 30)"),
    ("--deadline", "deadline", "Overall run deadline in seconds, 0 disables (default 300)"),
)


class _HelpFormatter(argparse.HelpFormatter):
    def __init__(self, prog: str) -> None:
        super().__init__(prog, max_help_position=30, width=_MAX_HELP_WIDTH)


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="jira-story",
        description="Create or update a Jira story and add it to a future sprint",
        formatter_class=_HelpFormatter,
    )
    for flag, dest, help_text in _INPUT_FLAGS:
        p.add_argument(flag, dest=dest, help=help_text)
    p.add_argument("--config", help="YAML file with default inputs")
    p.add_argument("--env-file", help="Load variables from this .env file")
    p.add_argument("--no-dotenv", action="store_true", help="Do not load .env files")
    p.add_argument(
        "--dry-run",
        action="store_true",
        default=None,
        help="Resolve sprint and search, but do not write to Jira",
    )
    p.add_argument("--log-format", choices=LOG_FORMATS, help="text, json or actions")
    p.add_argument("--log-level", help="DEBUG, INFO, WARNING or ERROR")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p


def _flag_inputs(args: argparse.Namespace) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for _, dest, _ in _INPUT_FLAGS:
        value = getattr(args, dest, None)
        if value is not None:
            out[dest] = value
    if args.dry_run:
        out["dry_run"] = "true"
    if args.log_format:
        out["log_format"] = args.log_format
    if args.log_level:
        out["log_level"] = args.log_level
    return out


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    env = ActionEnvironment(
        EnvInputsConfig(load_dotenv=not args.no_dotenv, dotenv_path=args.env_file)
    )
    inputs = {**env.collect_inputs(), **_flag_inputs(args)}
    return execute(inputs, env=env, config_file=args.config)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
