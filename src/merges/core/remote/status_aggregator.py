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
Read-only view of every chunk: local sync state plus PR, CI and review facets.

Each facet is fetched on its own; a facet that fails is reported as
``unknown`` without hiding the others.
"""

from dataclasses import asdict, dataclass

from loguru import logger

from merges.core.exceptions import GitError, RemoteError
from merges.core.git_commands.git_commands import GitCommands
from merges.core.state.models import Chunk, MergesState

from .interface import CheckRun, RemoteHost, Review

UNKNOWN = "unknown"

_PASSING_CONCLUSIONS = {"success", "neutral", "skipped"}
_DECISIVE_REVIEWS = {"APPROVED", "CHANGES_REQUESTED", "DISMISSED"}


def sync_status_label(behind: int | None) -> str:
    if behind is None:
        return "? unknown"
    if behind == 0:
        return "✓ current"
    return f"↓ {behind} behind"


def aggregate_ci(combined_state: str, check_runs: list[CheckRun]) -> str:
    """Fold commit statuses and check runs into success, pending or failure."""
    signals = []
    if combined_state:
        signals.append("failure" if combined_state in ("failure", "error") else combined_state)
    for run in check_runs:
        if run.status != "completed":
            signals.append("pending")
        elif run.conclusion in _PASSING_CONCLUSIONS:
            signals.append("success")
        else:
            signals.append("failure")

    if "failure" in signals:
        return "failure"
    if not signals or "pending" in signals:
        return "pending"
    return "success"


def aggregate_reviews(reviews: list[Review]) -> str:
    """
    approved, changes_requested or pending.

    Only each reviewer's latest decisive review counts; a request for
    changes from anyone outweighs approvals from others.
    """
    latest = {}
    for review in reviews:
        if review.state in _DECISIVE_REVIEWS:
            latest[review.user] = review.state

    decisions = set(latest.values())
    if "CHANGES_REQUESTED" in decisions:
        return "changes_requested"
    if "APPROVED" in decisions:
        return "approved"
    return "pending"


@dataclass
class ChunkStatus:
    index: int
    name: str
    branch: str
    files: int
    behind: int | None = None
    sync: str = ""
    pr_number: int | None = None
    pr_url: str | None = None
    pr_state: str | None = None
    ci: str | None = None
    review: str | None = None
    error: str | None = None

    def to_dict(self) -> dict:
        return asdict(self)


class StatusAggregator:
    def __init__(self, git_commands: GitCommands, remote: RemoteHost | None = None):
        self.git = git_commands
        self.remote = remote

    def collect(self, state: MergesState, base_ref: str) -> list[ChunkStatus]:
        return [
            self.chunk_status(index, chunk, base_ref)
            for index, chunk in enumerate(state.chunks, start=1)
        ]

    def chunk_status(self, index: int, chunk: Chunk, base_ref: str) -> ChunkStatus:
        status = ChunkStatus(
            index=index,
            name=chunk.name,
            branch=chunk.branch,
            files=len(chunk.files),
            pr_number=chunk.pr_number,
            pr_url=chunk.pr_url,
        )

        try:
            status.behind = self.git.count_commits_between(chunk.branch, base_ref)
        except GitError as e:
            status.error = e.message
        status.sync = sync_status_label(status.behind)

        if self.remote is None or chunk.pr_number is None:
            return status

        head_sha = self.git.try_resolve_commit(chunk.branch)
        try:
            pr = self.remote.get_pull_request(chunk.pr_number)
            status.pr_state = pr.status
            status.pr_url = pr.url or status.pr_url
            head_sha = pr.head_sha or head_sha
        except RemoteError as e:
            logger.warning(f"PR #{chunk.pr_number}: {e.message}")
            status.pr_state = UNKNOWN

        status.ci = self._ci_state(head_sha)
        status.review = self._review_state(chunk.pr_number)
        return status

    def pr_state(self, chunk: Chunk) -> str | None:
        """PR state of one chunk, None when it has no PR or no host is configured."""
        if self.remote is None or chunk.pr_number is None:
            return None
        return self.remote.get_pull_request(chunk.pr_number).status

    def _ci_state(self, sha: str | None) -> str:
        if not sha:
            return UNKNOWN
        try:
            return aggregate_ci(
                self.remote.get_combined_status(sha), self.remote.list_check_runs(sha)
            )
        except RemoteError as e:
            logger.warning(f"CI status for {sha[:7]}: {e.message}")
            return UNKNOWN

    def _review_state(self, number: int) -> str:
        try:
            return aggregate_reviews(self.remote.list_reviews(number))
        except RemoteError as e:
            logger.warning(f"Reviews for PR #{number}: {e.message}")
            return UNKNOWN
