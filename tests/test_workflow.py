from __future__ import annotations

from datetime import datetime, timezone
from urllib.parse import parse_qs, urlparse

import pytest

from jirastory.config import load_config
from jirastory.errors import SprintNotFoundError
from jirastory.jira_rest import JiraRestClient
from jirastory.logging import StructuredLogger
from jirastory.workflow import (
    ACTION_CREATED,
    ACTION_UNCHANGED,
    ACTION_UPDATED,
    State,
    StoryUpsert,
    upsert_story,
)

BASE = "https://acme.atlassian.net"
NOW = datetime(2024, 1, 1, 9, 0, 0, tzinfo=timezone.utc)
SPRINTS = {
    "values": [
        {"id": 11, "name": "Sprint 11", "state": "future"},
        {"id": 12, "name": "Sprint 12", "state": "future"},
    ]
}


def _config(**overrides: str):
    inputs = {
        "jira_base_url": BASE,
        "jira_user_email": "ci@acme.example",
        "jira_api_token": "tkn",
        "jira_project_key": "PROJ",
        "issue_summary": "Fix login bug",
        "issue_description": "Fix login",
        "board_id": "42",
        "sprint_name": "Sprint 12",
    }
    inputs.update(overrides)
    return load_config(inputs)


def _run(session, cfg=None):
    cfg = cfg or _config()
    logger = StructuredLogger(name="jirastory.test.workflow", level="DEBUG")
    client = JiraRestClient(
        base_url=cfg.base_url, email=cfg.user_email, token=cfg.api_token, session=session, logger=logger
    )
    upsert = StoryUpsert(client, cfg, logger=logger, now=NOW)
    return upsert, upsert.run()


def _existing(description: str, key: str = "PROJ-5") -> dict:
    return {"issues": [{"key": key, "fields": {"summary": "Fix login bug", "description": description}}]}


def test_unchanged_description_makes_no_mutation(fake_session, response) -> None:
    session = fake_session(
        response(200, SPRINTS),
        response(200, _existing("Fix login\n\nLast updated: 01.01.2024 10:00:00")),
    )
    upsert, result = _run(session)

    assert result.issue_key == "PROJ-5"
    assert result.action == ACTION_UNCHANGED
    assert [m for m, _ in session.calls] == ["GET", "GET"]
    assert State.SKIPPING in upsert.history
    assert upsert.state is State.DONE


def test_changed_description_updates_then_assigns(fake_session, response) -> None:
    session = fake_session(
        response(200, SPRINTS),
        response(200, _existing("Fix login\n\nLast updated: 01.01.2024 10:00:00")),
        response(204, ""),
        response(204, ""),
    )
    _, result = _run(session, _config(issue_description="Fix login flow"))

    assert result.issue_key == "PROJ-5"
    assert result.action == ACTION_UPDATED
    put, assign = session.request_log[2], session.request_log[3]
    assert put["method"] == "PUT"
    assert put["url"] == f"{BASE}/rest/api/2/issue/PROJ-5"
    assert put["json"] == {"fields": {"description": "Fix login flow\n\nLast updated: 01.01.2024 10:00:00"}}
    assert assign["method"] == "POST"
    assert assign["url"] == f"{BASE}/rest/agile/1.0/sprint/12/issue"
    assert assign["json"] == {"issues": ["PROJ-5"]}
    assert len(session.request_log) == 4


def test_no_match_creates_story_then_assigns(fake_session, response) -> None:
    session = fake_session(
        response(200, SPRINTS),
        response(200, {"issues": []}),
        response(201, {"id": "10001", "key": "PROJ-77"}),
        response(204, ""),
    )
    upsert, result = _run(session)

    assert result.issue_key == "PROJ-77"
    assert result.action == ACTION_CREATED
    create, assign = session.request_log[2], session.request_log[3]
    assert create["method"] == "POST"
    assert create["url"] == f"{BASE}/rest/api/2/issue"
    assert create["json"] == {
        "fields": {
            "project": {"key": "PROJ"},
            "summary": "Fix login bug",
            "description": "Fix login\n\nLast updated: 01.01.2024 10:00:00",
            "issuetype": {"name": "Story"},
            "sprint": 12,
        }
    }
    assert assign["url"] == f"{BASE}/rest/agile/1.0/sprint/12/issue"
    assert assign["json"] == {"issues": ["PROJ-77"]}
    assert State.UPDATING not in upsert.history


def test_only_first_match_is_considered(fake_session, response) -> None:
    search = _existing("Fix login")
    search["issues"].append({"key": "PROJ-6", "fields": {"description": "other"}})
    session = fake_session(response(200, SPRINTS), response(200, search))
    _, result = _run(session)
    assert result.issue_key == "PROJ-5"
    assert len(session.request_log) == 2


def test_null_description_on_existing_issue_triggers_update(fake_session, response) -> None:
    session = fake_session(
        response(200, SPRINTS),
        response(200, {"issues": [{"key": "PROJ-5", "fields": {"description": None}}]}),
        response(204, ""),
        response(204, ""),
    )
    _, result = _run(session)
    assert result.action == ACTION_UPDATED


def test_missing_sprint_aborts_before_any_mutation(fake_session, response) -> None:
    session = fake_session(response(200, SPRINTS))
    with pytest.raises(SprintNotFoundError) as excinfo:
        _run(session, _config(sprint_name="sprint 12"))
    assert 'Sprint "sprint 12" not found' in str(excinfo.value)
    assert session.calls == [("GET", f"{BASE}/rest/agile/1.0/board/42/sprint?state=future")]


def test_failure_moves_state_machine_to_failed(fake_session, response) -> None:
    session = fake_session(response(200, SPRINTS), response(500, "boom"))
    cfg = _config()
    client = JiraRestClient(base_url=BASE, email="e", token="t", session=session)
    upsert = StoryUpsert(client, cfg, now=NOW)
    with pytest.raises(Exception):
        upsert.run()
    assert upsert.state is State.FAILED
    assert upsert.history[:3] == [State.START, State.RESOLVING_SPRINT, State.SEARCHING]


def test_search_query_filters_project_summary_and_status(fake_session, response) -> None:
    session = fake_session(response(200, SPRINTS), response(200, _existing("Fix login")))
    _run(session)
    query = parse_qs(urlparse(session.request_log[1]["url"]).query)
    assert query["jql"] == ['project = PROJ AND summary ~ "Fix login bug" AND status != Done']
    assert query["fields"] == ["description"]


def test_dry_run_never_writes(fake_session, response) -> None:
    session = fake_session(response(200, SPRINTS), response(200, {"issues": []}))
    _, result = _run(session, _config(dry_run="true"))
    assert result.action == ACTION_CREATED
    assert result.issue_key == ""
    assert result.dry_run is True
    assert [m for m, _ in session.calls] == ["GET", "GET"]


def test_dry_run_update_reports_existing_key(fake_session, response) -> None:
    session = fake_session(response(200, SPRINTS), response(200, _existing("old")))
    _, result = _run(session, _config(dry_run="true"))
    assert (result.issue_key, result.action) == ("PROJ-5", ACTION_UPDATED)
    assert len(session.request_log) == 2


def test_upsert_story_function(fake_session, response) -> None:
    session = fake_session(response(200, SPRINTS), response(200, _existing("Fix login")))
    client = JiraRestClient(base_url=BASE, email="e", token="t", session=session)
    assert upsert_story(client, _config(), now=NOW).issue_key == "PROJ-5"
