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

from pathlib import Path
from subprocess import CompletedProcess
from unittest.mock import Mock

import pytest

from merges.core.exceptions import DetachedHeadError, GitError
from merges.core.git_commands.git_commands import GitCommands
from merges.core.git_interface.interface import GitInterface


def completed(stdout="", returncode=0, stderr=""):
    return CompletedProcess(args=["git"], returncode=returncode, stdout=stdout, stderr=stderr)


@pytest.fixture
def mock_git():
    git = Mock(spec=GitInterface)
    git.repo_path = Path("/repo")
    return git


@pytest.fixture
def commands(mock_git):
    return GitCommands(mock_git)


# -----------------------------------------------------------------------------
# error handling
# -----------------------------------------------------------------------------


def test_failed_mutation_raises_with_stderr_as_details(commands, mock_git):
    mock_git.run_git.return_value = completed(returncode=1, stderr="fatal: nope\n")

    with pytest.raises(GitError) as exc_info:
        commands.delete_branch("chunk")

    assert exc_info.value.message == "Failed to delete branch chunk"
    assert exc_info.value.details == "fatal: nope"


def test_detached_head(commands, mock_git):
    mock_git.run_git.return_value = completed(stdout="\n")

    with pytest.raises(DetachedHeadError):
        commands.get_current_branch()


# -----------------------------------------------------------------------------
# queries
# -----------------------------------------------------------------------------


def test_changed_file_status_parses_nul_separated_output(commands, mock_git):
    mock_git.run_git.return_value = completed(
        stdout="A\0db/a.sql\0M\0docs/café menu.md\0D\0db/old.sql\0"
    )

    statuses = commands.get_changed_file_status("main", "feature")

    assert statuses == {
        "db/a.sql": "A",
        "docs/café menu.md": "M",
        "db/old.sql": "D",
    }
    args = mock_git.run_git.call_args[0][0]
    assert args == ["diff", "-z", "--name-status", "--no-renames", "main...feature"]


def test_conflicted_paths_are_not_quoted(commands, mock_git):
    mock_git.run_git.return_value = completed(stdout="db/a.sql\0docs/café.md\0")

    assert commands.get_conflicted_paths() == ["db/a.sql", "docs/café.md"]
    assert "-z" in mock_git.run_git.call_args[0][0]


def test_try_resolve_commit_returns_none_for_unknown_ref(commands, mock_git):
    mock_git.run_git.return_value = completed(returncode=1)

    assert commands.try_resolve_commit("nope") is None
    with pytest.raises(GitError):
        commands.get_commit_hash("nope")


@pytest.mark.parametrize("returncode,expected", [(0, False), (1, True)])
def test_has_staged_changes(commands, mock_git, returncode, expected):
    mock_git.run_git.return_value = completed(returncode=returncode)

    assert commands.has_staged_changes() is expected


def test_has_staged_changes_raises_on_git_failure(commands, mock_git):
    mock_git.run_git.return_value = completed(returncode=128, stderr="fatal")

    with pytest.raises(GitError):
        commands.has_staged_changes()


def test_version_parsing(commands, mock_git):
    mock_git.run_git.return_value = completed(stdout="git version 2.39.2 (Apple Git-143)\n")

    assert commands.get_version() == (2, 39, 2)
    assert commands.supports_update_refs((2, 38)) is True


def test_old_git_has_no_update_refs(commands, mock_git):
    mock_git.run_git.return_value = completed(stdout="git version 2.34.1\n")

    assert commands.supports_update_refs((2, 38)) is False


def test_has_remote_uses_get_url(commands, mock_git):
    mock_git.run_git.return_value = completed(returncode=2)

    assert commands.has_remote("origin") is False
    assert mock_git.run_git.call_args[0][0] == ["remote", "get-url", "origin"]


# -----------------------------------------------------------------------------
# commands
# -----------------------------------------------------------------------------


def test_rebase_onto_passes_update_refs_and_non_interactive_env(commands, mock_git):
    mock_git.run_git.return_value = completed()

    commands.rebase_onto("abc", "def", "chunk", cwd="/wt", update_refs=True)

    args = mock_git.run_git.call_args[0][0]
    kwargs = mock_git.run_git.call_args[1]
    assert args == [
        "rebase",
        "--empty=keep",
        "--update-refs",
        "--onto",
        "abc",
        "def",
        "chunk",
    ]
    assert kwargs["env"]["GIT_EDITOR"] == "true"
    assert kwargs["cwd"] == "/wt"


def test_push_with_lease(commands, mock_git):
    mock_git.run_git.return_value = completed()

    commands.push_with_lease("origin", "feature-chunk-1-db")

    args = mock_git.run_git.call_args[0][0]
    assert "--force-with-lease" in args
    assert args[-2:] == ["origin", "feature-chunk-1-db:feature-chunk-1-db"]


def test_list_worktrees(commands, mock_git):
    mock_git.run_git.return_value = completed(
        stdout="worktree /repo\nHEAD abc\nbranch refs/heads/main\n\n"
        "worktree /repo/.git/merges-worktrees/x\nHEAD def\n"
    )

    assert commands.list_worktrees() == [
        Path("/repo"),
        Path("/repo/.git/merges-worktrees/x"),
    ]


# -----------------------------------------------------------------------------
# info/exclude
# -----------------------------------------------------------------------------


def test_ensure_excluded_appends_once(tmp_path, mock_git):
    mock_git.repo_path = tmp_path
    (tmp_path / ".git" / "info").mkdir(parents=True)
    exclude = tmp_path / ".git" / "info" / "exclude"
    exclude.write_text("*.log")
    mock_git.run_git.return_value = completed(stdout=".git\n")
    commands = GitCommands(mock_git)

    assert commands.ensure_excluded(".merges.json") is True
    assert commands.ensure_excluded(".merges.json") is False
    assert exclude.read_text() == "*.log\n.merges.json\n"
    assert commands.is_excluded(".merges.json") is True
