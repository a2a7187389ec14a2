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

from unittest.mock import Mock

import pytest

from merges.core.exceptions import GitError, RemoteError
from merges.core.git_commands.git_commands import GitCommands
from merges.core.remote.interface import CheckRun, PullRequest, RemoteHost, Review
from merges.core.remote.status_aggregator import (
    StatusAggregator,
    aggregate_ci,
    aggregate_reviews,
    sync_status_label,
)
from merges.core.state.models import Chunk

# -----------------------------------------------------------------------------
# folding rules
# -----------------------------------------------------------------------------


@pytest.mark.parametrize(
    "combined,runs,expected",
    [
        ("", [], "pending"),
        ("success", [], "success"),
        ("error", [], "failure"),
        ("", [CheckRun(status="completed", conclusion="success")], "success"),
        ("", [CheckRun(status="completed", conclusion="skipped")], "success"),
        ("", [CheckRun(status="in_progress")], "pending"),
        (
            "success",
            [
                CheckRun(status="in_progress"),
                CheckRun(status="completed", conclusion="timed_out"),
            ],
            "failure",
        ),
        ("pending", [CheckRun(status="completed", conclusion="success")], "pending"),
    ],
)
def test_aggregate_ci(combined, runs, expected):
    assert aggregate_ci(combined, runs) == expected


def test_latest_decisive_review_per_reviewer_counts():
    reviews = [
        Review(user="ana", state="CHANGES_REQUESTED"),
        Review(user="ana", state="COMMENTED"),
        Review(user="ana", state="APPROVED"),
        Review(user="bo", state="APPROVED"),
    ]

    assert aggregate_reviews(reviews) == "approved"


def test_changes_requested_outweighs_approvals():
    reviews = [
        Review(user="ana", state="APPROVED"),
        Review(user="bo", state="CHANGES_REQUESTED"),
    ]

    assert aggregate_reviews(reviews) == "changes_requested"


def test_only_comments_is_pending():
    assert aggregate_reviews([Review(user="ana", state="COMMENTED")]) == "pending"
    assert aggregate_reviews([]) == "pending"


def test_sync_status_label():
    assert sync_status_label(0) == "✓ current"
    assert sync_status_label(3) == "↓ 3 behind"
    assert sync_status_label(None) == "? unknown"


# -----------------------------------------------------------------------------
# collection
# -----------------------------------------------------------------------------


@pytest.fixture
def mock_git():
    git = Mock(spec=GitCommands)
    git.count_commits_between.return_value = 2
    git.try_resolve_commit.return_value = "localsha"
    return git


@pytest.fixture
def mock_remote():
    remote = Mock(spec=RemoteHost)
    remote.get_pull_request.return_value = PullRequest(
        number=5, url="https://github.com/acme/widgets/pull/5", state="open", head_sha="prsha"
    )
    remote.get_combined_status.return_value = "success"
    remote.list_check_runs.return_value = []
    remote.list_reviews.return_value = [Review(user="ana", state="APPROVED")]
    return remote


def test_chunk_without_remote_reports_sync_only(mock_git):
    chunk = Chunk(name="db", branch="f-chunk-1-db", files=["db/a.sql"], pr_number=5)

    status = StatusAggregator(mock_git).chunk_status(1, chunk, "origin/main")

    assert status.behind == 2
    assert status.sync == "↓ 2 behind"
    assert status.pr_state is None
    assert status.ci is None
    mock_git.count_commits_between.assert_called_once_with("f-chunk-1-db", "origin/main")


def test_chunk_with_pr_fills_every_facet(mock_git, mock_remote):
    chunk = Chunk(name="db", branch="f-chunk-1-db", pr_number=5)

    status = StatusAggregator(mock_git, mock_remote).chunk_status(1, chunk, "main")

    assert status.pr_state == "open"
    assert status.ci == "success"
    assert status.review == "approved"
    mock_remote.get_combined_status.assert_called_once_with("prsha")


def test_failing_facet_does_not_hide_the_others(mock_git, mock_remote):
    mock_remote.list_check_runs.side_effect = RemoteError("rate limited")
    chunk = Chunk(name="db", branch="f-chunk-1-db", pr_number=5)

    status = StatusAggregator(mock_git, mock_remote).chunk_status(1, chunk, "main")

    assert status.ci == "unknown"
    assert status.pr_state == "open"
    assert status.review == "approved"


def test_unreadable_pr_falls_back_to_local_head(mock_git, mock_remote):
    mock_remote.get_pull_request.side_effect = RemoteError("404")
    chunk = Chunk(name="db", branch="f-chunk-1-db", pr_number=5)

    status = StatusAggregator(mock_git, mock_remote).chunk_status(1, chunk, "main")

    assert status.pr_state == "unknown"
    mock_remote.get_combined_status.assert_called_once_with("localsha")


def test_missing_branch_is_reported_as_error(mock_git):
    mock_git.count_commits_between.side_effect = GitError("Could not compare")
    chunk = Chunk(name="db", branch="gone")

    status = StatusAggregator(mock_git).chunk_status(1, chunk, "main")

    assert status.behind is None
    assert status.sync == "? unknown"
    assert status.error == "Could not compare"
