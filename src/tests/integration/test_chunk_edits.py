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

from merges.core.exceptions import ChunkNotFoundError, GitError, TransactionError, ValidationError
from merges.core.mutations.chunk_editor import ChunkEditor
from merges.core.state.models import ChunkProposal
from merges.pipelines.edit_pipeline import ChunkEditPipeline
from merges.pipelines.split_pipeline import SplitPipeline
from merges.pipelines.sync_pipeline import SyncPipeline


def split(global_context, store, plan=None):
    pipeline = SplitPipeline(global_context, store)
    pipeline.apply(plan or pipeline.auto_plan())
    return store.load()


def blob(global_context, ref, path):
    return global_context.git_commands.get_blob_id(ref, path)


# -----------------------------------------------------------------------------
# add
# -----------------------------------------------------------------------------


def test_adding_a_file_already_in_the_chunk_changes_nothing(global_context, store, initial_state):
    state = split(global_context, store)
    src = state.find_chunk("src")
    git = global_context.git_commands
    before = git.get_commit_hash(src.branch)

    result = ChunkEditPipeline(global_context, store).add("src", ["src/app.py"])

    assert result.committed is False
    assert result.unchanged == ["src/app.py"]
    assert result.added == []
    assert git.get_commit_hash(src.branch) == before
    assert store.load().find_chunk("src").files == src.files


def test_add_unassigned_file_amends_the_chunk(global_context, store, initial_state, feature_repo, run_git):
    state = split(
        global_context,
        store,
        [
            ChunkProposal(name="models", files=["src/models/user.py"]),
            ChunkProposal(name="db", files=["db/a.sql"]),
        ],
    )
    db = state.find_chunk("db")

    result = ChunkEditPipeline(global_context, store).add("db", ["db/b.sql", "db/old.sql"])

    assert result.committed is True
    assert result.added == ["db/b.sql", "db/old.sql"]
    assert blob(global_context, db.branch, "db/b.sql") == blob(global_context, "feature/big", "db/b.sql")
    assert blob(global_context, db.branch, "db/old.sql") is None
    assert run_git(feature_repo, "rev-list", "--count", f"main..{db.branch}") == "1"
    assert store.load().find_chunk("db").files == ["db/a.sql", "db/b.sql", "db/old.sql"]


def test_add_rejects_files_owned_elsewhere_or_unchanged(global_context, store, initial_state):
    split(global_context, store)
    pipeline = ChunkEditPipeline(global_context, store)

    with pytest.raises(ValidationError, match="another chunk"):
        pipeline.add("db", ["src/app.py"])
    with pytest.raises(ValidationError, match="not changed"):
        pipeline.add("db", ["README.md"])
    with pytest.raises(ChunkNotFoundError):
        pipeline.add("nope", ["db/a.sql"])


# -----------------------------------------------------------------------------
# move
# -----------------------------------------------------------------------------


def test_move_between_unstacked_chunks(global_context, store, initial_state):
    split(
        global_context,
        store,
        [
            ChunkProposal(name="models", files=["src/models/user.py", "src/app.py"]),
            ChunkProposal(name="db", files=["db/a.sql"]),
        ],
    )

    result = ChunkEditPipeline(global_context, store).move("src/app.py", "models", "db")

    state = store.load()
    models, db = state.find_chunk("models"), state.find_chunk("db")
    assert result.from_chunk == "models"
    assert models.files == ["src/models/user.py"]
    assert db.files == ["db/a.sql", "src/app.py"]
    assert blob(global_context, models.branch, "src/app.py") == blob(global_context, "main", "src/app.py")
    assert blob(global_context, db.branch, "src/app.py") == blob(global_context, "feature/big", "src/app.py")


def test_move_up_a_linear_stack_restacks_descendants(
    global_context, store, initial_state, feature_repo, run_git
):
    split(global_context, store)
    SyncPipeline(global_context, store).run(fetch=False)

    result = ChunkEditPipeline(global_context, store).move("db/a.sql", "db", "root")

    state = store.load()
    db, root, src = state.chunks
    assert "db/a.sql" not in db.files
    assert "db/a.sql" in root.files
    expected = blob(global_context, "feature/big", "db/a.sql")
    assert blob(global_context, db.branch, "db/a.sql") is None
    assert blob(global_context, root.branch, "db/a.sql") == expected
    # the chunk above inherits the file through the stack
    assert blob(global_context, src.branch, "db/a.sql") == expected
    assert "src" in result.restacked
    assert run_git(feature_repo, "rev-parse", f"{root.branch}~1") == run_git(feature_repo, "rev-parse", db.branch)
    assert run_git(feature_repo, "rev-parse", f"{src.branch}~1") == run_git(feature_repo, "rev-parse", root.branch)
    assert run_git(feature_repo, "branch", "--show-current") == "feature/big"


def test_failed_move_restores_branches_and_plan(
    global_context, store, initial_state, monkeypatch
):
    state = split(global_context, store)
    git = global_context.git_commands
    before = {c.branch: git.get_commit_hash(c.branch) for c in state.chunks}

    def broken_add(self, *args, **kwargs):
        raise GitError("Failed to amend commit", "index.lock exists")

    monkeypatch.setattr(ChunkEditor, "_add_to_branch", broken_add)

    with pytest.raises(TransactionError, match="stays in 'src'"):
        ChunkEditPipeline(global_context, store).move("src/app.py", "src", "db")

    assert {c.branch: git.get_commit_hash(c.branch) for c in state.chunks} == before
    reloaded = store.load()
    assert "src/app.py" in reloaded.find_chunk("src").files
    assert "src/app.py" not in reloaded.find_chunk("db").files


def test_move_validation(global_context, store, initial_state):
    split(global_context, store)
    pipeline = ChunkEditPipeline(global_context, store)

    with pytest.raises(ValidationError, match="is not in chunk"):
        pipeline.move("db/a.sql", "src", "root")
    with pytest.raises(ValidationError, match="already in"):
        pipeline.move("db/a.sql", "db", "db")
