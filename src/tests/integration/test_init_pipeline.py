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

from merges.context import InitContext
from merges.core.exceptions import ConfigurationError, GitError, ValidationError
from merges.core.sync.conflict_memory import RerereConflictMemory
from merges.pipelines.init_pipeline import InitPipeline


@pytest.fixture
def github_remote(feature_repo, run_git):
    run_git(feature_repo, "remote", "add", "origin", "git@github.com:acme/widgets.git")


def init(global_context, store, **kwargs):
    kwargs.setdefault("base_branch", "main")
    return InitPipeline(global_context, InitContext(**kwargs), store).run()


def test_init_records_branches_and_repository(global_context, store, github_remote, feature_repo):
    state = init(global_context, store, commit_prefix="[WID-7]")

    assert state.source_branch == "feature/big"
    assert state.base_branch == "main"
    assert (state.repo_owner, state.repo_name) == ("acme", "widgets")
    assert state.strategy is None
    assert state.commit_prefix == "[WID-7]"
    assert store.load() == state
    assert ".merges.json" in (feature_repo / ".git" / "info" / "exclude").read_text()


def test_init_refuses_to_overwrite_without_force(global_context, store, github_remote):
    init(global_context, store)

    with pytest.raises(ValidationError, match="already exists"):
        init(global_context, store)

    state = init(global_context, store, use_worktrees=True, force=True)
    assert store.load().use_worktrees is state.use_worktrees is True


def test_init_on_base_branch_fails(global_context, store, github_remote, feature_repo, run_git):
    run_git(feature_repo, "checkout", "-q", "main")

    with pytest.raises(ValidationError, match="base branch"):
        init(global_context, store)
    assert not store.exists()


def test_missing_local_base_branch(global_context, store, github_remote):
    with pytest.raises(ValidationError) as exc_info:
        init(global_context, store, base_branch="develop")

    assert "git branch develop origin/develop" in exc_info.value.details


def test_missing_or_foreign_remote(global_context, store, feature_repo, run_git):
    with pytest.raises(GitError, match="No remote named 'origin'"):
        init(global_context, store)

    run_git(feature_repo, "remote", "add", "origin", "https://example.com/acme/widgets.git")
    with pytest.raises(ConfigurationError):
        init(global_context, store)
    assert not store.exists()


def test_init_enables_conflict_memory(global_context, store, github_remote, feature_repo, run_git):
    InitPipeline(
        global_context,
        InitContext(base_branch="main"),
        store,
        conflict_memory=RerereConflictMemory(),
    ).run()

    assert run_git(feature_repo, "config", "rerere.enabled") == "true"
    assert run_git(feature_repo, "config", "rerere.autoupdate") == "true"
