"""GitHub API utilities for posting coverage comments.

Covers the small slice of the REST API the reporter needs: listing, creating
and updating pull-request comments, plus PR detection from the GitHub Actions
environment.
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import requests

logger = logging.getLogger(__name__)

# GitHub API constants
GITHUB_API_BASE = "https://api.github.com"
_GITHUB_AUTH_ENV_KEY = "GITHUB_" + "TOKEN"
_GITHUB_API_VERSION = "2022-11-28"
_COMMENTS_PER_PAGE = 100
_REQUEST_TIMEOUT = 30

# Expected number of parts when splitting "owner/repo"
_OWNER_REPO_PARTS = 2
_PR_EVENTS = frozenset({"pull_request", "pull_request_target"})


@dataclass
class GitHubPRInfo:
    """Pull request a coverage comment belongs to."""

    owner: str
    repo: str
    pr_number: int


class GitHubAPIError(Exception):
    """A GitHub REST call failed or no token was configured."""


class GitHubAPI:
    """Issue-comment client for a single token.

    Every request failure, HTTP status or transport, is re-raised as
    :class:`GitHubAPIError`.
    """

    def __init__(self, token: str | None = None) -> None:
        self._token = token or os.environ.get(_GITHUB_AUTH_ENV_KEY)
        if not self._token:
            raise GitHubAPIError(
                f"GitHub token required. Set {_GITHUB_AUTH_ENV_KEY} or pass --github-token."
            )

        self._session_headers = {
            "Authorization": f"Bearer {self._token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": _GITHUB_API_VERSION,
        }

    def _repo_url(self, pr_info: GitHubPRInfo) -> str:
        return f"{GITHUB_API_BASE}/repos/{pr_info.owner}/{pr_info.repo}"

    def _comments_url(self, pr_info: GitHubPRInfo) -> str:
        return f"{self._repo_url(pr_info)}/issues/{pr_info.pr_number}/comments"

    def create_comment(self, pr_info: GitHubPRInfo, body: str) -> dict[str, Any]:
        """POST a new comment on the pull request and return the created comment."""
        result: dict[str, Any] = self._request("POST", self._comments_url(pr_info), body)
        return result

    def update_comment(self, pr_info: GitHubPRInfo, comment_id: int, body: str) -> dict[str, Any]:
        """PATCH the body of comment *comment_id* and return the updated comment."""
        url = f"{self._repo_url(pr_info)}/issues/comments/{comment_id}"
        result: dict[str, Any] = self._request("PATCH", url, body)
        return result

    def find_comment_by_marker(self, pr_info: GitHubPRInfo, marker: str) -> dict[str, Any] | None:
        """Return the first PR comment whose body contains *marker*.

        Comments are listed ``_COMMENTS_PER_PAGE`` at a time; a short page ends
        the search.
        """
        base_url = self._comments_url(pr_info)
        page = 1

        while True:
            comments: list[dict[str, Any]] = self._request(
                "GET", f"{base_url}?per_page={_COMMENTS_PER_PAGE}&page={page}"
            )

            for comment in comments:
                if marker in (comment.get("body") or ""):
                    return comment

            if len(comments) < _COMMENTS_PER_PAGE:
                return None
            page += 1

    def upsert_comment(self, pr_info: GitHubPRInfo, body: str, marker: str) -> dict[str, Any]:
        """Update the comment carrying *marker*, or create it.

        *marker* is appended to *body* when missing so the next run finds it.
        """
        if marker not in body:
            logger.warning("Marker '%s' not found in comment body. Adding it.", marker)
            body = f"{body}\n\n{marker}"

        existing = self.find_comment_by_marker(pr_info, marker)

        if existing:
            logger.info("Updating existing comment %d", existing["id"])
            return self.update_comment(pr_info, existing["id"], body)

        logger.info("Creating new comment")
        return self.create_comment(pr_info, body)

    def _request(self, method: str, url: str, body: str | None = None) -> Any:
        send = getattr(requests, method.lower())
        kwargs: dict[str, Any] = {"headers": self._session_headers, "timeout": _REQUEST_TIMEOUT}
        if body is not None:
            kwargs["json"] = {"body": body}

        try:
            response = send(url, **kwargs)
            response.raise_for_status()
            return response.json()
        except Exception as exc:
            raise GitHubAPIError(f"{method} request failed: {exc}") from exc


def get_pr_info_from_env() -> GitHubPRInfo | None:
    """Detect the pull request of the current GitHub Actions run.

    The PR number comes from the event payload at ``GITHUB_EVENT_PATH``, which
    carries it for both ``pull_request`` and ``pull_request_target`` runs, and
    otherwise from a ``refs/pull/<n>/merge`` ``GITHUB_REF``. Returns None
    outside a PR run.
    """
    github_repository = os.environ.get("GITHUB_REPOSITORY")
    if not github_repository or os.environ.get("GITHUB_EVENT_NAME") not in _PR_EVENTS:
        return None

    parts = github_repository.split("/")
    if len(parts) != _OWNER_REPO_PARTS:
        return None
    owner, repo = parts

    pr_number = _pr_number_from_event(os.environ.get("GITHUB_EVENT_PATH"))
    if pr_number is None:
        pr_number = _pr_number_from_ref(os.environ.get("GITHUB_REF"))
    if pr_number is None:
        return None

    return GitHubPRInfo(owner=owner, repo=repo, pr_number=pr_number)


def _pr_number_from_event(event_path: str | None) -> int | None:
    if not event_path:
        return None
    try:
        payload = json.loads(Path(event_path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.debug("Cannot read event payload %s: %s", event_path, exc)
        return None

    pull_request = payload.get("pull_request") if isinstance(payload, dict) else None
    number = pull_request.get("number") if isinstance(pull_request, dict) else None
    if isinstance(number, int) and not isinstance(number, bool):
        return number
    return None


def _pr_number_from_ref(github_ref: str | None) -> int | None:
    if not github_ref or not github_ref.startswith("refs/pull/"):
        return None
    try:
        return int(github_ref.split("/")[2])
    except (IndexError, ValueError):
        return None


def compute_comment_marker(prefix: str) -> str:
    """Hidden HTML marker for *prefix*: ``<!-- prefix:<sha256[:8]> -->``."""
    digest = hashlib.sha256(prefix.encode()).hexdigest()[:8]
    return f"<!-- {prefix}:{digest} -->"
