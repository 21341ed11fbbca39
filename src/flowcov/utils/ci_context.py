"""CI and pull request context detection."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path

from flowcov.utils.git import GitHubPRInfo

logger = logging.getLogger(__name__)

# Expected number of parts when splitting "owner/repo"
_OWNER_REPO_PARTS = 2

_PULL_REF_PREFIX = "refs/pull/"


@dataclass
class CIContext:
    """Detected CI execution context."""

    is_ci: bool
    """Running in a CI environment."""

    is_github_actions: bool
    """Running inside GitHub Actions."""

    event_name: str | None
    """GitHub event that triggered the workflow."""

    commit_sha: str | None
    """Current commit SHA."""


def detect_ci_context() -> CIContext:
    """Detect the CI context from environment variables."""
    if os.getenv("GITHUB_ACTIONS") == "true":
        return CIContext(
            is_ci=True,
            is_github_actions=True,
            event_name=os.getenv("GITHUB_EVENT_NAME") or None,
            commit_sha=os.getenv("GITHUB_SHA") or None,
        )

    return CIContext(
        is_ci=os.getenv("CI") == "true",
        is_github_actions=False,
        event_name=None,
        commit_sha=None,
    )


def split_repository(slug: str) -> tuple[str, str] | None:
    """Split ``owner/repo`` into its parts, or return None if malformed."""
    parts = slug.strip().split("/")
    if len(parts) != _OWNER_REPO_PARTS or not all(parts):
        return None
    return parts[0], parts[1]


def get_pr_info_from_env(
    repository: str = "",
    pr_number: int = 0,
) -> GitHubPRInfo | None:
    """Resolve the pull request to report on.

    Explicit ``repository``/``pr_number`` win. Otherwise ``GITHUB_REPOSITORY``
    supplies the repository, and the PR number comes from the event payload
    at ``GITHUB_EVENT_PATH`` or, failing that, a ``refs/pull/<n>/merge`` ref.

    Returns:
        GitHubPRInfo if a pull request could be identified, None otherwise.
    """
    repo_parts = split_repository(repository or os.environ.get("GITHUB_REPOSITORY", ""))
    if repo_parts is None:
        return None

    number = pr_number or _pr_number_from_event() or _pr_number_from_ref()
    if not number:
        return None

    owner, repo = repo_parts
    return GitHubPRInfo(owner=owner, repo=repo, pr_number=number)


def _pr_number_from_event() -> int | None:
    event_path = os.environ.get("GITHUB_EVENT_PATH")
    if not event_path:
        return None

    path = Path(event_path)
    if not path.is_file():
        return None

    try:
        event = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("Could not read GitHub event payload %s: %s", path, exc)
        return None

    pull_request = event.get("pull_request") if isinstance(event, dict) else None
    if not isinstance(pull_request, dict):
        return None
    return _parse_int(pull_request.get("number"))


def _pr_number_from_ref() -> int | None:
    ref = os.environ.get("GITHUB_REF", "")
    if not ref.startswith(_PULL_REF_PREFIX):
        return None
    return _parse_int(ref[len(_PULL_REF_PREFIX) :].split("/")[0])


def _parse_int(value: object) -> int | None:
    """Parse a value to int, return None if invalid."""
    if value is None or value == "":
        return None
    try:
        return int(str(value))
    except ValueError:
        return None
