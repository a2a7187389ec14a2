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

from merges.core.remote import credentials
from merges.core.remote.interface import CheckRun, Review
from merges.pipelines.split_pipeline import SplitPipeline
from merges.pipelines.status_pipeline import StatusPipeline


def split(global_context, store):
    pipeline = SplitPipeline(global_context, store)
    pipeline.apply(pipeline.auto_plan())
    return store.load()


def test_status_without_token_reports_local_state(
    global_context, store, initial_state, feature_repo, run_git, write, monkeypatch
):
    monkeypatch.setattr(credentials, "_token_from_gh", lambda: None)
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    split(global_context, store)
    run_git(feature_repo, "checkout", "-q", "main")
    write(feature_repo, "docs/notes.md", "notes\n")
    run_git(feature_repo, "add", "-A")
    run_git(feature_repo, "commit", "-q", "-m", "docs")
    run_git(feature_repo, "checkout", "-q", "feature/big")

    state, statuses = StatusPipeline(global_context, store).run()

    assert [s.name for s in statuses] == ["db", "root", "src"]
    assert [s.index for s in statuses] == [1, 2, 3]
    assert all(s.behind == 1 for s in statuses)
    assert statuses[0].files == 3
    assert statuses[0].pr_state is None


def test_status_with_pull_requests(global_context, store, initial_state, fake_remote):
    state = split(global_context, store)
    db = state.chunks[0]
    pr = fake_remote.create_pull_request("db", head=db.branch, base="main")
    db.pr_number = pr.number
    store.save(state)
    sha = global_context.git_commands.get_commit_hash(db.branch)
    fake_remote.check_runs[sha] = [CheckRun(name="ci", status="completed", conclusion="failure")]
    fake_remote.reviews[pr.number] = [Review(user="ana", state="APPROVED")]

    _, statuses = StatusPipeline(global_context, store, fake_remote).run()

    assert statuses[0].sync == "✓ current"
    assert statuses[0].pr_state == "open"
    assert statuses[0].ci == "failure"
    assert statuses[0].review == "approved"
    assert statuses[1].pr_number is None
    assert statuses[1].ci is None
