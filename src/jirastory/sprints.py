"""Resolve a sprint name on a board to its Jira id."""

from __future__ import annotations

from .errors import SprintNotFoundError, UnexpectedResponseError
from .jira_rest import JiraRestClient, RawBody
from .logging import get_logger
from .models import FUTURE_SPRINT_STATE, Sprint

BOARD_SPRINTS_PATH = "rest/agile/1.0/board/{board_id}/sprint?state={state}"


def fetch_future_sprints(client: JiraRestClient, board_id: str) -> list[Sprint]:
    # first page only; boards rarely carry more than 50 planned sprints
    data = client.send(
        "GET", BOARD_SPRINTS_PATH.format(board_id=board_id, state=FUTURE_SPRINT_STATE)
    )
    if isinstance(data, RawBody) or not isinstance(data, dict):
        raise UnexpectedResponseError(
            f"Unexpected response listing sprints of board {board_id}",
            response_text=str(data) if data is not None else None,
        )
    return [Sprint.from_payload(v) for v in data.get("values") or [] if isinstance(v, dict)]


def resolve_sprint_id(client: JiraRestClient, board_id: str, sprint_name: str) -> int | str:
    """Return the id of the future sprint named exactly ``sprint_name``."""
    log = get_logger()
    try:
        sprints = fetch_future_sprints(client, board_id)
        for sprint in sprints:
            if sprint.name == sprint_name:
                log.debug(
                    f"Resolved sprint {sprint_name!r} to id {sprint.id}",
                    board_id=board_id,
                    sprint_id=sprint.id,
                )
                return sprint.id
        raise SprintNotFoundError(sprint_name, board_id)
    except Exception as exc:
        log.error(f"Error getting sprint ID: {exc}", board_id=board_id)
        raise


__all__ = ["fetch_future_sprints", "resolve_sprint_id"]
