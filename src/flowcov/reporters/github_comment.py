"""Publish the coverage table as a single, updatable pull request comment."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterable

    from flowcov.utils.git import GitHubAPI, GitHubPRInfo

logger = logging.getLogger(__name__)

COMMENT_HEADER = "## Flow Coverage\n"


@dataclass
class PublishResult:
    """Outcome of publishing the report comment."""

    action: str
    """``created`` or ``updated``."""

    comment_id: int | None = None
    """ID of the comment that now holds the report."""

    comment_url: str = ""
    """HTML URL of the comment."""


def find_existing(comments: Iterable[dict[str, Any]]) -> dict[str, Any] | None:
    """Return the first comment whose body starts with the report header."""
    for comment in comments:
        body = comment.get("body") or ""
        if body.startswith(COMMENT_HEADER):
            return comment
    return None


def build_comment_body(table: str) -> str:
    """Prefix the rendered table with the report header."""
    return COMMENT_HEADER + table


class CommentPublisher:
    """Find-or-create the report comment on a pull request."""

    def __init__(self, api: GitHubAPI) -> None:
        self._api = api

    def publish(self, pr_info: GitHubPRInfo, table: str) -> PublishResult:
        """Edit the existing report comment, or create one.

        Raises:
            GitHubAPIError: If listing, editing, or creating the comment fails.
        """
        body = build_comment_body(table)
        existing = find_existing(self._api.list_comments(pr_info))

        if existing is not None:
            logger.info("Updating coverage comment %s on PR #%d", existing["id"], pr_info.pr_number)
            response = self._api.update_comment(pr_info, int(existing["id"]), body)
            action = "updated"
        else:
            logger.info("Creating coverage comment on PR #%d", pr_info.pr_number)
            response = self._api.create_comment(pr_info, body)
            action = "created"

        return PublishResult(
            action=action,
            comment_id=response.get("id"),
            comment_url=str(response.get("html_url", "")),
        )
