"""Create-or-update of a single Jira story.

The run is a small state machine::

    START -> SEARCHING -> COMPARING -> UPDATING | SKIPPING
                       -> CREATING
          -> ASSIGNING_SPRINT -> DONE

with ``FAILED`` reachable from every step. The sprint is resolved before the
search so a missing sprint aborts the run before anything is written.
Calls are strictly sequential; at most one issue is touched per run.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from .config import ActionConfig
from .description import descriptions_match, stamp_description
from .issues import (
    add_issue_to_sprint,
    build_jql,
    create_story,
    search_issues,
    update_description,
)
from .jira_rest import JiraRestClient
from .logging import StructuredLogger, get_logger
from .models import Issue
from .sprints import resolve_sprint_id

ACTION_CREATED = "created"
ACTION_UPDATED = "updated"
ACTION_UNCHANGED = "unchanged"


class State(Enum):
    START = "start"
    RESOLVING_SPRINT = "resolving_sprint"
    SEARCHING = "searching"
    COMPARING = "comparing"
    UPDATING = "updating"
    SKIPPING = "skipping"
    CREATING = "creating"
    ASSIGNING_SPRINT = "assigning_sprint"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class UpsertResult:
    issue_key: str
    action: str
    sprint_id: int | str
    dry_run: bool = False


class StoryUpsert:
    """One run of the upsert workflow against a configured client."""

    def __init__(
        self,
        client: JiraRestClient,
        cfg: ActionConfig,
        logger: StructuredLogger | None = None,
        now: datetime | None = None,
    ) -> None:
        self.client = client
        self.cfg = cfg
        self.logger = logger or get_logger()
        self.now = now
        self.state = State.START
        self.history: list[State] = [State.START]

    def _enter(self, state: State) -> None:
        self.logger.debug(f"upsert:{self.state.value} -> {state.value}", state=state.value)
        self.state = state
        self.history.append(state)

    def run(self) -> UpsertResult:
        try:
            return self._run()
        except Exception:
            self._enter(State.FAILED)
            raise

    def _run(self) -> UpsertResult:
        cfg = self.cfg
        self._enter(State.RESOLVING_SPRINT)
        sprint_id = resolve_sprint_id(self.client, cfg.board_id, cfg.sprint_name)

        self._enter(State.SEARCHING)
        existing = search_issues(self.client, build_jql(cfg.project_key, cfg.issue_summary))
        stamped = stamp_description(cfg.issue_description, self.now)

        if existing:
            if len(existing) > 1:
                self.logger.warning(
                    f"{len(existing)} open issues match the summary; using {existing[0].key}",
                    matches=[i.key for i in existing],
                )
            return self._reconcile(existing[0], stamped, sprint_id)

        self._enter(State.CREATING)
        if cfg.dry_run:
            self.logger.log_issue_action(ACTION_CREATED, None, dry_run=True)
            self.logger.info("DRY-RUN POST rest/api/2/issue and sprint assignment skipped")
            self._enter(State.DONE)
            return UpsertResult("", ACTION_CREATED, sprint_id, dry_run=True)
        created = create_story(
            self.client,
            project_key=cfg.project_key,
            summary=cfg.issue_summary,
            description=stamped,
            sprint_id=sprint_id,
        )
        # sprint is also set on creation; the explicit call covers sites
        # where the sprint field is not on the create screen
        self._assign(created.key, sprint_id)
        self.logger.log_issue_action(ACTION_CREATED, created.key)
        self._enter(State.DONE)
        return UpsertResult(created.key, ACTION_CREATED, sprint_id)

    def _reconcile(self, issue: Issue, stamped: str, sprint_id: int | str) -> UpsertResult:
        cfg = self.cfg
        self._enter(State.COMPARING)
        if descriptions_match(issue.description, cfg.issue_description):
            self._enter(State.SKIPPING)
            self.logger.info(f"No changes detected for existing issue: {issue.key}")
            self.logger.log_issue_action(ACTION_UNCHANGED, issue.key, dry_run=cfg.dry_run)
            self._enter(State.DONE)
            return UpsertResult(issue.key, ACTION_UNCHANGED, sprint_id, dry_run=cfg.dry_run)

        self._enter(State.UPDATING)
        if cfg.dry_run:
            self.logger.info(f"DRY-RUN PUT rest/api/2/issue/{issue.key} and sprint assignment skipped")
            self.logger.log_issue_action(ACTION_UPDATED, issue.key, dry_run=True)
            self._enter(State.DONE)
            return UpsertResult(issue.key, ACTION_UPDATED, sprint_id, dry_run=True)
        update_description(self.client, issue.key, stamped)
        self._assign(issue.key, sprint_id)
        self.logger.log_issue_action(ACTION_UPDATED, issue.key)
        self._enter(State.DONE)
        return UpsertResult(issue.key, ACTION_UPDATED, sprint_id)

    def _assign(self, issue_key: str, sprint_id: int | str) -> None:
        self._enter(State.ASSIGNING_SPRINT)
        add_issue_to_sprint(self.client, sprint_id, issue_key, self.cfg.sprint_name)


def upsert_story(
    client: JiraRestClient,
    cfg: ActionConfig,
    logger: StructuredLogger | None = None,
    now: datetime | None = None,
) -> UpsertResult:
    return StoryUpsert(client, cfg, logger=logger, now=now).run()


__all__ = [
    "State",
    "StoryUpsert",
    "UpsertResult",
    "upsert_story",
    "ACTION_CREATED",
    "ACTION_UPDATED",
    "ACTION_UNCHANGED",
]
