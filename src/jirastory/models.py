from __future__ import annotations

from dataclasses import dataclass
from typing import Any

STORY_ISSUE_TYPE = "Story"
FUTURE_SPRINT_STATE = "future"


@dataclass(frozen=True)
class Issue:
    """Jira issue as seen by the upsert workflow.

    Only the fields the workflow compares or writes are kept; the search
    request asks Jira for ``description`` alone, so ``summary`` is usually empty.
    """

    key: str
    summary: str = ""
    description: str = ""
    project_key: str | None = None
    issue_type: str = STORY_ISSUE_TYPE

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> Issue:
        fields = payload.get("fields") or {}
        project = fields.get("project") or {}
        issue_type = fields.get("issuetype") or {}
        return cls(
            key=str(payload.get("key") or ""),
            summary=str(fields.get("summary") or ""),
            # Jira returns null for an empty description
            description=str(fields.get("description") or ""),
            project_key=project.get("key"),
            issue_type=str(issue_type.get("name") or STORY_ISSUE_TYPE),
        )


@dataclass(frozen=True)
class Sprint:
    id: int | str
    name: str
    state: str = FUTURE_SPRINT_STATE

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> Sprint:
        return cls(
            id=payload.get("id", ""),
            name=str(payload.get("name") or ""),
            state=str(payload.get("state") or FUTURE_SPRINT_STATE),
        )


__all__ = ["Issue", "Sprint", "STORY_ISSUE_TYPE", "FUTURE_SPRINT_STATE"]
