"""Jira issue search and mutation calls used by the upsert workflow."""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

from .errors import UnexpectedResponseError
from .jira_rest import JiraRestClient, RawBody
from .logging import get_logger
from .models import STORY_ISSUE_TYPE, Issue

SEARCH_PATH = "rest/api/2/search"
ISSUE_PATH = "rest/api/2/issue"
SPRINT_ISSUES_PATH = "rest/agile/1.0/sprint/{sprint_id}/issue"
SEARCH_FIELDS = "description"


def _quote_jql_string(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def build_jql(project_key: str, summary: str) -> str:
    """Open issues in ``project_key`` whose summary contains ``summary``."""
    return (
        f"project = {project_key} AND summary ~ {_quote_jql_string(summary)} "
        "AND status != Done"
    )


def _expect_object(data: Any, what: str) -> dict[str, Any]:
    if isinstance(data, RawBody) or not isinstance(data, dict):
        raise UnexpectedResponseError(
            f"Unexpected response for {what}: {str(data)[:200]!r}",
            response_text=str(data) if data is not None else None,
        )
    return data


def search_issues(client: JiraRestClient, jql: str) -> list[Issue]:
    path = f"{SEARCH_PATH}?jql={quote(jql, safe='')}&fields={SEARCH_FIELDS}"
    try:
        data = _expect_object(client.send("GET", path), "issue search")
    except Exception as exc:
        get_logger().error(f"Error searching Jira issues: {exc}", jql=jql)
        raise
    out: list[Issue] = []
    for entry in data.get("issues") or []:
        if isinstance(entry, dict):
            out.append(Issue.from_payload(entry))
    return out


def update_description(client: JiraRestClient, issue_key: str, description: str) -> None:
    try:
        client.send("PUT", f"{ISSUE_PATH}/{issue_key}", body={"fields": {"description": description}})
    except Exception as exc:
        get_logger().error(f"Error updating Jira issue {issue_key}: {exc}", issue_key=issue_key)
        raise
    get_logger().info(f"Updated Jira issue: {issue_key}", issue_key=issue_key)


def create_story(
    client: JiraRestClient,
    *,
    project_key: str,
    summary: str,
    description: str,
    sprint_id: int | str,
) -> Issue:
    payload: dict[str, Any] = {
        "fields": {
            "project": {"key": project_key},
            "summary": summary,
            "description": description,
            "issuetype": {"name": STORY_ISSUE_TYPE},
            "sprint": sprint_id,
        }
    }
    try:
        data = _expect_object(client.send("POST", ISSUE_PATH, body=payload), "issue creation")
        key = data.get("key")
        if not isinstance(key, str) or not key:
            raise UnexpectedResponseError(
                "Jira did not return a key for the created issue", response_text=str(data)
            )
    except Exception as exc:
        get_logger().error(f"Error creating Jira issue: {exc}", project_key=project_key)
        raise
    get_logger().info(f"Created Jira issue: {key}", issue_key=key)
    return Issue(
        key=key,
        summary=summary,
        description=description,
        project_key=project_key,
    )


def add_issue_to_sprint(
    client: JiraRestClient, sprint_id: int | str, issue_key: str, sprint_name: str | None = None
) -> None:
    try:
        client.send(
            "POST",
            SPRINT_ISSUES_PATH.format(sprint_id=sprint_id),
            body={"issues": [issue_key]},
        )
    except Exception as exc:
        get_logger().error(
            f"Error adding {issue_key} to sprint {sprint_id}: {exc}", issue_key=issue_key
        )
        raise
    get_logger().info(
        f"Issue {issue_key} added to sprint: {sprint_name or sprint_id}", issue_key=issue_key
    )


__all__ = [
    "build_jql",
    "search_issues",
    "update_description",
    "create_story",
    "add_issue_to_sprint",
]
