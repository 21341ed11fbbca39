"""GitHub REST API client for pull request files and comments."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import Any

import requests

from flowcov.models.coverage import FileChange

logger = logging.getLogger(__name__)

GITHUB_API_BASE = "https://api.github.com"
_GITHUB_AUTH_ENV_KEY = "GITHUB_" + "TOKEN"

_PER_PAGE = 100
_REQUEST_TIMEOUT = 30


@dataclass
class GitHubPRInfo:
    """Information about a GitHub pull request."""

    owner: str
    """Repository owner (username or organization)."""

    repo: str
    """Repository name."""

    pr_number: int
    """Pull request number."""


class GitHubAPIError(Exception):
    """Exception raised when GitHub API operations fail."""


class GitHubAPI:
    """Client for the handful of GitHub endpoints flowcov needs.

    Handles authentication, pagination, and comment management.
    """

    def __init__(self, token: str | None = None, *, base_url: str = GITHUB_API_BASE) -> None:
        """Initialize the GitHub API client.

        Args:
            token: GitHub token. If not provided, read from ``GITHUB_TOKEN``.
            base_url: API root, overridable for GitHub Enterprise.

        Raises:
            GitHubAPIError: If no token is available.
        """
        self._token = token or os.environ.get(_GITHUB_AUTH_ENV_KEY)
        if not self._token:
            raise GitHubAPIError(
                f"GitHub token required. Set {_GITHUB_AUTH_ENV_KEY} environment variable "
                "or pass --github-token."
            )

        self._base_url = base_url.rstrip("/")
        self._session_headers = {
            "Authorization": f"Bearer {self._token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }

    def list_pull_request_files(self, pr_info: GitHubPRInfo) -> list[FileChange]:
        """List every file changed in a pull request.

        Raises:
            GitHubAPIError: If any page request fails.
        """
        url = (
            f"{self._base_url}/repos/{pr_info.owner}/{pr_info.repo}/"
            f"pulls/{pr_info.pr_number}/files"
        )
        entries = self._get_paginated(url)
        logger.info("PR #%d touches %d file(s)", pr_info.pr_number, len(entries))
        return [
            FileChange(filename=str(entry["filename"]), status=str(entry.get("status", "")))
            for entry in entries
        ]

    def list_comments(self, pr_info: GitHubPRInfo) -> list[dict[str, Any]]:
        """List every issue comment on a pull request, oldest first."""
        url = (
            f"{self._base_url}/repos/{pr_info.owner}/{pr_info.repo}/"
            f"issues/{pr_info.pr_number}/comments"
        )
        return self._get_paginated(url)

    def create_comment(self, pr_info: GitHubPRInfo, body: str) -> dict[str, Any]:
        """Create a new comment on a pull request.

        Args:
            pr_info: Pull request information.
            body: Comment body (markdown formatted).

        Returns:
            GitHub API response as a dictionary.

        Raises:
            GitHubAPIError: If the API request fails.
        """
        url = (
            f"{self._base_url}/repos/{pr_info.owner}/{pr_info.repo}/"
            f"issues/{pr_info.pr_number}/comments"
        )

        result: dict[str, Any] = self._post(url, {"body": body})
        return result

    def update_comment(self, pr_info: GitHubPRInfo, comment_id: int, body: str) -> dict[str, Any]:
        """Replace the body of an existing comment.

        Args:
            pr_info: Pull request information (owner and repo are used).
            comment_id: ID of the comment to update.
            body: New comment body (markdown formatted).

        Returns:
            GitHub API response as a dictionary.

        Raises:
            GitHubAPIError: If the API request fails.
        """
        url = (
            f"{self._base_url}/repos/{pr_info.owner}/{pr_info.repo}/"
            f"issues/comments/{comment_id}"
        )

        result: dict[str, Any] = self._patch(url, {"body": body})
        return result

    def _get_paginated(self, url: str) -> list[dict[str, Any]]:
        """GET every page of a list endpoint until a short page comes back."""
        items: list[dict[str, Any]] = []
        page = 1
        while True:
            batch = self._get(url, params={"per_page": _PER_PAGE, "page": page})
            if not isinstance(batch, list):
                raise GitHubAPIError(f"Expected a list from {url}, got {type(batch).__name__}")
            items.extend(batch)
            if len(batch) < _PER_PAGE:
                return items
            page += 1

    def _get(self, url: str, params: dict[str, Any] | None = None) -> Any:
        """Make a GET request to the GitHub API.

        Raises:
            GitHubAPIError: If the request fails.
        """
        try:
            response = requests.get(
                url, params=params, headers=self._session_headers, timeout=_REQUEST_TIMEOUT
            )
            response.raise_for_status()
            return response.json()
        except Exception as exc:
            raise GitHubAPIError(f"GET request failed: {exc}") from exc

    def _post(self, url: str, data: dict[str, Any]) -> Any:
        """Make a POST request to the GitHub API.

        Raises:
            GitHubAPIError: If the request fails.
        """
        try:
            response = requests.post(
                url, json=data, headers=self._session_headers, timeout=_REQUEST_TIMEOUT
            )
            response.raise_for_status()
            return response.json()
        except Exception as exc:
            raise GitHubAPIError(f"POST request failed: {exc}") from exc

    def _patch(self, url: str, data: dict[str, Any]) -> Any:
        """Make a PATCH request to the GitHub API.

        Raises:
            GitHubAPIError: If the request fails.
        """
        try:
            response = requests.patch(
                url, json=data, headers=self._session_headers, timeout=_REQUEST_TIMEOUT
            )
            response.raise_for_status()
            return response.json()
        except Exception as exc:
            raise GitHubAPIError(f"PATCH request failed: {exc}") from exc
