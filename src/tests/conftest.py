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

import subprocess
from pathlib import Path

import pytest

from merges.constants import STATE_FILE
from merges.context import GlobalConfig, GlobalContext
from merges.core.exceptions import RemoteError
from merges.core.remote.interface import CheckRun, PullRequest, RemoteHost, Review
from merges.core.state.models import MergesState
from merges.core.state.store import StateStore

SOURCE_BRANCH = "feature/big"


def _git(repo: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", *args], cwd=repo, capture_output=True, text=True, check=True
    )
    return result.stdout.strip()


def _write(repo: Path, path: str, content: str) -> None:
    target = repo / path
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(content, encoding="utf-8")


class FakeRemoteHost(RemoteHost):
    """In-memory pull request host."""

    def __init__(self):
        self.pulls: dict[int, PullRequest] = {}
        self.created: list[PullRequest] = []
        self.retargeted: list[tuple[int, str]] = []
        self.deleted_branches: list[str] = []
        self.combined_status: dict[str, str] = {}
        self.check_runs: dict[str, list[CheckRun]] = {}
        self.reviews: dict[int, list[Review]] = {}
        self.fail_create_for: set[str] = set()
        self.closed = False
        self._next_number = 1

    def create_pull_request(self, title, head, base, body=""):
        if head in self.fail_create_for:
            raise RemoteError(f"Validation Failed for {head}")
        number = self._next_number
        self._next_number += 1
        pr = PullRequest(
            number=number,
            url=f"https://github.com/acme/widgets/pull/{number}",
            state="open",
            base_ref=base,
            head_ref=head,
            title=title,
        )
        self.pulls[number] = pr
        self.created.append(pr)
        return pr

    def get_pull_request(self, number):
        if number not in self.pulls:
            raise RemoteError(f"GitHub API error 404 on GET /pulls/{number}")
        return self.pulls[number]

    def update_pull_request_base(self, number, base):
        pr = self.get_pull_request(number).model_copy(update={"base_ref": base})
        self.pulls[number] = pr
        self.retargeted.append((number, base))
        return pr

    def get_combined_status(self, sha):
        return self.combined_status.get(sha, "")

    def list_check_runs(self, sha):
        return self.check_runs.get(sha, [])

    def list_reviews(self, number):
        return self.reviews.get(number, [])

    def delete_branch(self, branch):
        self.deleted_branches.append(branch)
        return True

    def close(self):
        self.closed = True

    def merge(self, number: int) -> None:
        self.pulls[number] = self.pulls[number].model_copy(
            update={"merged": True, "state": "closed"}
        )


@pytest.fixture
def run_git():
    return _git


@pytest.fixture
def write():
    return _write


@pytest.fixture
def git_repo(tmp_path) -> Path:
    """A repository on ``main`` with one commit."""
    repo = tmp_path / "repo"
    repo.mkdir()
    _git(repo, "init", "-q")
    _git(repo, "symbolic-ref", "HEAD", "refs/heads/main")
    _git(repo, "config", "user.name", "Test User")
    _git(repo, "config", "user.email", "test@example.com")
    _git(repo, "config", "commit.gpgsign", "false")

    _write(repo, "README.md", "# widgets\n")
    _write(repo, "src/app.py", "app = 1\n")
    _write(repo, "db/old.sql", "drop table legacy;\n")
    _git(repo, "add", "-A")
    _git(repo, "commit", "-q", "-m", "initial")
    return repo


@pytest.fixture
def feature_repo(git_repo) -> Path:
    """``feature/big`` adds, modifies and deletes files across three groups."""
    repo = git_repo
    _git(repo, "checkout", "-q", "-b", SOURCE_BRANCH)
    _write(repo, "db/a.sql", "create table a (id int);\n")
    _write(repo, "db/b.sql", "create table b (id int);\n")
    _write(repo, "src/models/user.py", "class User:\n    pass\n")
    _write(repo, "src/app.py", "app = 2\n")
    _write(repo, "setup.cfg", "[metadata]\nname = widgets\n")
    _git(repo, "rm", "-q", "db/old.sql")
    _git(repo, "add", "-A")
    _git(repo, "commit", "-q", "-m", "feature work")
    return repo


@pytest.fixture
def config() -> GlobalConfig:
    return GlobalConfig(conflict_memory=False)


@pytest.fixture
def global_context(feature_repo, config) -> GlobalContext:
    return GlobalContext.from_global_config(config, feature_repo)


@pytest.fixture
def store(feature_repo) -> StateStore:
    return StateStore(feature_repo)


@pytest.fixture
def initial_state(feature_repo, store, global_context) -> MergesState:
    """An initialised plan without chunks, as `merges init` leaves it."""
    state = MergesState(
        base_branch="main",
        source_branch=SOURCE_BRANCH,
        repo_owner="acme",
        repo_name="widgets",
    )
    store.save(state)
    global_context.git_commands.ensure_excluded(STATE_FILE)
    return state


@pytest.fixture
def fake_remote() -> FakeRemoteHost:
    return FakeRemoteHost()
