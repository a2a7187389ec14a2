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

import pytest

from merges.core.data.results import OutcomeStatus
from merges.core.state.models import Strategy
from merges.pipelines.push_pipeline import PushPipeline
from merges.pipelines.split_pipeline import SplitPipeline

DB = "feature/big-chunk-1-db"
ROOT = "feature/big-chunk-2-root"
SRC = "feature/big-chunk-3-src"


@pytest.fixture
def origin(tmp_path, feature_repo, run_git):
    bare = tmp_path / "origin.git"
    run_git(tmp_path, "init", "-q", "--bare", str(bare))
    run_git(feature_repo, "remote", "add", "origin", str(bare))
    run_git(feature_repo, "push", "-q", "origin", "main")
    return bare


@pytest.fixture
def split_state(global_context, store, initial_state, origin):
    pipeline = SplitPipeline(global_context, store)
    pipeline.apply(pipeline.auto_plan())
    return store.load()


def push(global_context, store, fake_remote, strategy=None):
    return PushPipeline(global_context, store, fake_remote).run(strategy)


def test_stacked_push_opens_chained_pull_requests(
    global_context, store, split_state, fake_remote, origin, run_git
):
    report = push(global_context, store, fake_remote)

    assert report.ok
    assert all(o.status is OutcomeStatus.PUSHED for o in report.outcomes)
    assert [(pr.head_ref, pr.base_ref) for pr in fake_remote.created] == [
        (DB, "main"),
        (ROOT, DB),
        (SRC, ROOT),
    ]
    assert [pr.title for pr in fake_remote.created] == ["db", "root", "src"]

    state = store.load()
    assert state.strategy is Strategy.STACKED
    assert [c.pr_number for c in state.chunks] == [1, 2, 3]
    assert state.chunks[0].pr_url == "https://github.com/acme/widgets/pull/1"
    for branch in (DB, ROOT, SRC):
        assert run_git(origin, "rev-parse", branch) == run_git(
            global_context.repo_path, "rev-parse", branch
        )


def test_pushing_again_creates_no_duplicates(global_context, store, split_state, fake_remote):
    push(global_context, store, fake_remote)

    report = push(global_context, store, fake_remote)

    assert report.ok
    assert len(fake_remote.created) == 3
    assert fake_remote.retargeted == []
    for outcome in report.outcomes:
        assert outcome.message.startswith("branch unchanged")
        assert "up to date" in outcome.message


def test_switching_to_independent_retargets_pull_requests(
    global_context, store, split_state, fake_remote, origin, run_git
):
    push(global_context, store, fake_remote)

    report = push(global_context, store, fake_remote, Strategy.INDEPENDENT)

    assert report.ok
    assert fake_remote.retargeted == [(2, "main"), (3, "main")]
    assert store.load().strategy is Strategy.INDEPENDENT
    main_tip = run_git(origin, "rev-parse", "main")
    for branch in (DB, ROOT, SRC):
        assert run_git(origin, "rev-parse", f"{branch}~1") == main_tip


def test_independent_failure_stays_isolated(global_context, store, split_state, fake_remote):
    fake_remote.fail_create_for = {ROOT}

    report = push(global_context, store, fake_remote, Strategy.INDEPENDENT)

    assert not report.ok
    assert report.outcome_for("db").status is OutcomeStatus.PUSHED
    assert report.outcome_for("root").status is OutcomeStatus.FAILED
    assert report.outcome_for("src").status is OutcomeStatus.PUSHED
    assert [c.pr_number for c in store.load().chunks] == [1, None, 2]


def test_stacked_failure_holds_back_chunks_above(global_context, store, split_state, fake_remote):
    fake_remote.fail_create_for = {ROOT}

    report = push(global_context, store, fake_remote)

    assert [o.status for o in report.outcomes] == [
        OutcomeStatus.PUSHED,
        OutcomeStatus.FAILED,
        OutcomeStatus.SKIPPED,
    ]
    assert len(fake_remote.created) == 1


def test_merged_pull_request_is_left_alone(global_context, store, split_state, fake_remote):
    push(global_context, store, fake_remote, Strategy.INDEPENDENT)
    fake_remote.merge(1)

    report = push(global_context, store, fake_remote)

    assert "PR #1 is merged" in report.outcome_for("db").message
    assert len(fake_remote.created) == 3
    assert not fake_remote.closed
