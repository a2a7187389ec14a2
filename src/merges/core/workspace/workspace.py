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
Working copies that chunk operations run in.

Operations never ask "which branch is checked out right now". They ask the
``WorkspaceProvider`` for the workspace that owns a chunk branch and run
their git commands inside it:

* ``SharedWorkspace``: the repository's main working directory. Only one
  chunk can be worked on at a time; every use checks the chunk out and then
  returns to the home branch.
* ``WorktreeWorkspace``: one isolated worktree per chunk branch. The branch is
  always checked out there, so no switching is ever needed and several
  chunks can be worked on concurrently.
"""

import contextlib
from abc import ABC, abstractmethod
from collections.abc import Iterator
from pathlib import Path

from loguru import logger

from merges.constants import WORKTREE_DIR
from merges.core.exceptions import DetachedHeadError, GitError
from merges.core.git_commands.git_commands import GitCommands


class Workspace(ABC):
    isolated: bool = False

    def __init__(self, git_commands: GitCommands, path: Path):
        self.git = git_commands
        self.path = Path(path)

    @abstractmethod
    def create_branch(self, branch: str, start: str) -> None:
        """Create ``branch`` at ``start`` and make it the branch of this workspace."""

    @abstractmethod
    @contextlib.contextmanager
    def on_branch(self, branch: str) -> Iterator[Path]:
        """Yield a directory where ``branch`` is checked out."""

    @abstractmethod
    def discard(self, branch: str, force: bool = True) -> None:
        """Remove ``branch`` (and anything this workspace holds for it)."""

    def restore(self, force: bool = False) -> None:
        """Return to the state the workspace had before an operation."""


class SharedWorkspace(Workspace):
    def __init__(self, git_commands: GitCommands, path: Path, home_branch: str):
        super().__init__(git_commands, path)
        self.home_branch = home_branch

    def current_branch(self) -> str | None:
        try:
            return self.git.get_current_branch(cwd=self.path)
        except DetachedHeadError:
            return None

    def create_branch(self, branch: str, start: str) -> None:
        self.git.create_branch(branch, start, cwd=self.path)

    @contextlib.contextmanager
    def on_branch(self, branch: str) -> Iterator[Path]:
        if self.current_branch() != branch:
            self.git.checkout(branch, cwd=self.path)
        try:
            yield self.path
        finally:
            self.restore()

    def discard(self, branch: str, force: bool = True) -> None:
        if self.current_branch() == branch:
            self.git.checkout(self.home_branch, cwd=self.path, force=force)
        if self.git.branch_exists(branch):
            self.git.delete_branch(branch)

    def restore(self, force: bool = False) -> None:
        if self.git.is_rebase_in_progress(self.path):
            logger.debug(
                "Rebase in progress in {path}, staying where we are", path=self.path
            )
            return
        if self.current_branch() != self.home_branch:
            self.git.checkout(self.home_branch, cwd=self.path, force=force)


class WorktreeWorkspace(Workspace):
    isolated = True

    def create_branch(self, branch: str, start: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.git.add_worktree(self.path, branch, start)

    @contextlib.contextmanager
    def on_branch(self, branch: str) -> Iterator[Path]:
        if not self.path.exists():
            raise GitError(
                f"Worktree for {branch} is missing: {self.path}",
                "Run `merges doctor --repair` to recreate it",
            )
        yield self.path

    def discard(self, branch: str, force: bool = True) -> None:
        if self.path.exists():
            self.git.remove_worktree(self.path)
        else:
            self.git.prune_worktrees()
        if self.git.branch_exists(branch):
            self.git.delete_branch(branch)


class WorkspaceProvider:
    """Hands out the workspace that owns each chunk branch."""

    def __init__(
        self,
        git_commands: GitCommands,
        repo_root: Path,
        home_branch: str,
        use_worktrees: bool = False,
    ):
        self.git = git_commands
        self.repo_root = Path(repo_root)
        self.use_worktrees = use_worktrees
        self.shared = SharedWorkspace(git_commands, self.repo_root, home_branch)

    @property
    def isolated(self) -> bool:
        return self.use_worktrees

    @property
    def worktree_root(self) -> Path:
        return self.git.get_common_dir() / WORKTREE_DIR

    def worktree_path(self, branch: str) -> Path:
        return self.worktree_root / branch.replace("/", "-")

    def for_branch(self, branch: str) -> Workspace:
        if self.use_worktrees:
            return WorktreeWorkspace(self.git, self.worktree_path(branch))
        return self.shared

    def restore(self, force: bool = False) -> None:
        self.shared.restore(force=force)

    def ensure_worktree(self, branch: str) -> bool:
        """Recreate a missing worktree for an existing branch. Returns True if one was added."""
        path = self.worktree_path(branch)
        if path.exists() or not self.git.branch_exists(branch):
            return False
        self.git.prune_worktrees()
        path.parent.mkdir(parents=True, exist_ok=True)
        self.git.add_worktree(path, branch)
        logger.debug("Recreated worktree {path} for {branch}", path=path, branch=branch)
        return True
