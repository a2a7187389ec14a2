# -----------------------------------------------------------------------------
# /*
#  * Copyright (C) 2025 CodeStory
#  *
#  * This program is free software; you can redistribute it and/or modify
#  * it under the terms of the GNU General Public License as published by
#  * the Free Software Foundation; Version 2.
#  *
#  * This program is distributed in the hope that it will be useful,
#  * but WITHOUT ANY WARRANTY; without even the implied warranty of
#  * MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE. See the
#  * GNU General Public License for more details.
#  *
#  * You should have received a copy of the GNU General Public License
#  * along with this program; if not, you can contact us at support@codestory.build
#  */
# -----------------------------------------------------------------------------


"""
GitHub REST client for the pull request operations merges needs.

API used:
    POST  /repos/{owner}/{repo}/pulls
    GET   /repos/{owner}/{repo}/pulls/{number}
    PATCH /repos/{owner}/{repo}/pulls/{number}           {"base": ...}
    GET   /repos/{owner}/{repo}/pulls/{number}/reviews
    GET   /repos/{owner}/{repo}/commits/{sha}/status
    GET   /repos/{owner}/{repo}/commits/{sha}/check-runs
    DELETE /repos/{owner}/{repo}/git/refs/heads/{branch}
"""

import re

import httpx
from loguru import logger

from merges.constants import DEFAULT_GITHUB_API_URL
from merges.core.exceptions import ConfigurationError, RemoteError

from .interface import CheckRun, PullRequest, RemoteHost, Review

_HTTPS_RE = re.compile(r"^https?://github\.com/([^/]+)/([^/]+?)(?:\.git)?/?$")
_SSH_RE = re.compile(r"^(?:ssh://)?git@github\.com[:/]([^/]+)/([^/]+?)(?:\.git)?/?$")


def parse_github_remote(url: str) -> tuple[str, str]:
    """Extract (owner, repo) from a GitHub https or ssh remote URL."""
    cleaned = url.strip()
    for pattern in (_HTTPS_RE, _SSH_RE):
        match = pattern.match(cleaned)
        if match:
            return match.group(1), match.group(2)
    raise ConfigurationError(
        f"Cannot parse GitHub owner/repo from remote URL: {cleaned}",
        "Expected https://github.com/<owner>/<repo> or git@github.com:<owner>/<repo>",
    )


def _pull_request(data: dict) -> PullRequest:
    return PullRequest(
        number=data["number"],
        url=data.get("html_url", ""),
        state=data.get("state", "open"),
        merged=bool(data.get("merged") or data.get("merged_at")),
        base_ref=(data.get("base") or {}).get("ref", ""),
        head_ref=(data.get("head") or {}).get("ref", ""),
        head_sha=(data.get("head") or {}).get("sha", ""),
        title=data.get("title", ""),
    )


class GitHubClient(RemoteHost):
    """
    GitHub HTTP API client bound to one repository.

    Attributes:
        owner: repository owner (user or organisation)
        repo: repository name
    """

    def __init__(
        self,
        owner: str,
        repo: str,
        token: str,
        api_url: str = DEFAULT_GITHUB_API_URL,
        timeout: float = 30.0,
        client: httpx.Client | None = None,
    ) -> None:
        self.owner = owner
        self.repo = repo
        self.client = client or httpx.Client(
            base_url=api_url.rstrip("/"),
            timeout=timeout,
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
                "X-GitHub-Api-Version": "2022-11-28",
                "User-Agent": "merges",
            },
        )

    @property
    def _repo_path(self) -> str:
        return f"/repos/{self.owner}/{self.repo}"

    def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        try:
            response = self.client.request(method, path, **kwargs)
            response.raise_for_status()
            return response
        except httpx.HTTPStatusError as e:
            logger.error(f"GitHub {method} {path} failed: {e.response.status_code}")
            raise RemoteError(
                f"GitHub API error {e.response.status_code} on {method} {path}",
                self._error_details(e.response),
            ) from e
        except httpx.HTTPError as e:
            logger.error(f"GitHub {method} {path} failed: {e}")
            raise RemoteError(f"GitHub request failed: {method} {path}", str(e)) from e

    @staticmethod
    def _error_details(response: httpx.Response) -> str:
        try:
            data = response.json()
        except ValueError:
            return response.text[:500]
        message = data.get("message", "") if isinstance(data, dict) else ""
        errors = data.get("errors") if isinstance(data, dict) else None
        if errors:
            message += f" {errors}"
        return message or response.text[:500]

    def create_pull_request(
        self, title: str, head: str, base: str, body: str = ""
    ) -> PullRequest:
        response = self._request(
            "POST",
            f"{self._repo_path}/pulls",
            json={"title": title, "head": head, "base": base, "body": body},
        )
        return _pull_request(response.json())

    def get_pull_request(self, number: int) -> PullRequest:
        response = self._request("GET", f"{self._repo_path}/pulls/{number}")
        return _pull_request(response.json())

    def update_pull_request_base(self, number: int, base: str) -> PullRequest:
        response = self._request(
            "PATCH", f"{self._repo_path}/pulls/{number}", json={"base": base}
        )
        return _pull_request(response.json())

    def get_combined_status(self, sha: str) -> str:
        response = self._request("GET", f"{self._repo_path}/commits/{sha}/status")
        data = response.json()
        # no statuses at all reports "pending" with total_count 0
        if not data.get("total_count", len(data.get("statuses", []))):
            return ""
        return data.get("state", "")

    def list_check_runs(self, sha: str) -> list[CheckRun]:
        response = self._request(
            "GET",
            f"{self._repo_path}/commits/{sha}/check-runs",
            params={"per_page": 100},
        )
        return [
            CheckRun(
                name=run.get("name", ""),
                status=run.get("status", ""),
                conclusion=run.get("conclusion"),
            )
            for run in response.json().get("check_runs", [])
        ]

    def list_reviews(self, number: int) -> list[Review]:
        response = self._request(
            "GET",
            f"{self._repo_path}/pulls/{number}/reviews",
            params={"per_page": 100},
        )
        return [
            Review(user=(r.get("user") or {}).get("login", ""), state=r.get("state", ""))
            for r in response.json()
        ]

    def delete_branch(self, branch: str) -> bool:
        try:
            self._request("DELETE", f"{self._repo_path}/git/refs/heads/{branch}")
        except RemoteError as e:
            cause = e.__cause__
            if isinstance(cause, httpx.HTTPStatusError) and cause.response.status_code in (404, 422):
                logger.debug("Remote branch {branch} already gone", branch=branch)
                return False
            raise
        return True

    def close(self) -> None:
        """Close HTTP client"""
        self.client.close()
