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

import shutil

from merges.pipelines.doctor_pipeline import DoctorPipeline
from merges.pipelines.split_pipeline import SplitPipeline


def split(global_context, store):
    pipeline = SplitPipeline(global_context, store)
    pipeline.apply(pipeline.auto_plan())
    return store.load()


def kinds(report):
    return [issue.kind for issue in report.issues]


def test_fresh_split_is_healthy(global_context, store, initial_state):
    split(global_context, store)

    report = DoctorPipeline(global_context, store).run()

    assert report.healthy
    assert report.issues == []


def test_missing_branch_is_reported(global_context, store, initial_state, feature_repo, run_git):
    state = split(global_context, store)
    run_git(feature_repo, "branch", "-D", state.chunks[1].branch)

    report = DoctorPipeline(global_context, store).run(repair=True)

    assert kinds(report) == ["missing_branch"]
    assert report.issues[0].chunk == "root"
    assert not report.healthy


def test_repair_restores_exclude_entry(global_context, store, initial_state, feature_repo):
    exclude = feature_repo / ".git" / "info" / "exclude"
    exclude.write_text("")

    report = DoctorPipeline(global_context, store).run()
    assert kinds(report) == ["not_excluded"]
    assert not report.healthy

    repaired = DoctorPipeline(global_context, store).run(repair=True)
    assert repaired.healthy
    assert ".merges.json" in exclude.read_text()


def test_partition_and_stale_files(global_context, store, initial_state):
    state = split(global_context, store)
    state.chunks[0].files.append("src/app.py")
    state.chunks[1].files.append("README.md")
    store.save(state)

    report = DoctorPipeline(global_context, store).run()

    assert sorted(kinds(report)) == ["duplicate_file", "stale_file"]


def test_repair_recreates_missing_worktree(global_context, store, initial_state, feature_repo):
    initial_state.use_worktrees = True
    store.save(initial_state)
    split(global_context, store)
    worktree = feature_repo / ".git" / "merges-worktrees" / "feature-big-chunk-1-db"
    shutil.rmtree(worktree)

    report = DoctorPipeline(global_context, store).run(repair=True)

    assert kinds(report) == ["missing_worktree"]
    assert report.issues[0].fixed
    assert report.healthy
    assert worktree.is_dir()
