"""jirastory - create or update a Jira story from a CI pipeline.

High-level public API:

from jirastory import JiraRestClient, load_config, upsert_story

cfg = load_config({"jira_base_url": "https://acme.atlassian.net", ...})
client = JiraRestClient(base_url=cfg.base_url, email=cfg.user_email, token=cfg.api_token)
result = upsert_story(client, cfg)
print(result.issue_key, result.action)

The CLI (``jira-story`` / ``python -m jirastory``) wraps the same calls and is
what the GitHub Action runs.
"""

from __future__ import annotations

# Version constant (sync manually with pyproject)
__version__ = "0.2.0"

from .config import ActionConfig, load_config  # noqa: E402
from .description import strip_timestamp  # noqa: E402
from .errors import (  # noqa: E402
    ConfigurationError,
    NotFoundError,
    RemoteError,
    TransientTransportError,
)
from .jira_rest import JiraRestClient  # noqa: E402
from .workflow import UpsertResult, upsert_story  # noqa: E402

__all__ = [
    "ActionConfig",
    "load_config",
    "strip_timestamp",
    "ConfigurationError",
    "NotFoundError",
    "RemoteError",
    "TransientTransportError",
    "JiraRestClient",
    "UpsertResult",
    "upsert_story",
    "__version__",
]
