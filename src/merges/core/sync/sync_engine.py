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


from loguru import logger

from merges.core.data.results import ChunkOutcome, OperationReport, OutcomeStatus
from merges.core.exceptions import GitError, ValidationError
from merges.core.git_commands.git_commands import GitCommands
from merges.core.stack.stack_manager import StackManager
from merges.core.state.models import MergesState, Strategy
from merges.core.sync.executor import run_for_chunks, skipped
from merges.core.workspace.workspace import WorkspaceProvider


class SyncEngine:
    """Brings every chunk branch up to date with the tip of the base branch."""

    def __init__(
        self,
        git_commands: GitCommands,
        workspaces: WorkspaceProvider,
        stack: StackManager,
        remote_name: str = "origin",
        parallel: bool = False,
        max_workers: int = 4,
    ):
        self.git = git_commands
        self.workspaces = workspaces
        self.stack = stack
        self.remote_name = remote_name
        self.parallel = parallel
        self.max_workers = max_workers

    def resolve_base_ref(self, state: MergesState, fetch: bool = True) -> str:
        """
        The ref chunks get rebased onto.

        The remote tracking branch after a fetch when the remote exists,
        the local base branch otherwise.
        """
        if not self.git.has_remote(self.remote_name):
            logger.debug("No remote {remote}, using local refs", remote=self.remote_name)
            return state.base_branch

        if fetch:
            logger.info("Fetching {remote}...", remote=self.remote_name)
            self.git.fetch(self.remote_name)

        remote_ref = f"{self.remote_name}/{state.base_branch}"
        if self.git.try_resolve_commit(remote_ref) is not None:
            return remote_ref
        return state.base_branch

    def sync(self, state: MergesState, base_ref: str) -> OperationReport:
        if self.parallel and not self.workspaces.isolated:
            raise ValidationError(
                "Parallel sync needs one worktree per chunk",
                "Run `merges init --worktrees` to enable worktree mode",
            )

        pending = self._resume_shared_rebase(state)
        if pending is not None:
            return OperationReport("sync", pending)

        if state.effective_strategy() is Strategy.STACKED:
            outcomes = self.stack.propagate(state, base_ref)
        else:
            outcomes = run_for_chunks(
                state.chunks,
                lambda chunk: self.stack.rebase_chunk(chunk, base_ref),
                parallel=self.parallel,
                max_workers=self.max_workers,
                halt_on_conflict=not self.workspaces.isolated,
            )

        self.workspaces.restore()
        return OperationReport("sync", outcomes)

    def _resume_shared_rebase(self, state: MergesState) -> list[ChunkOutcome] | None:
        """
        Continue a rebase a previous sync left in the shared working directory.

        Returns outcomes for the whole plan when the rebase still has
        unresolved conflicts, None when there is nothing (left) to resume.
        """
        if self.workspaces.isolated:
            return None
        root = self.workspaces.shared.path
        if not self.git.is_rebase_in_progress(root):
            return None

        head = self.git.get_rebase_head_name(root)
        rebased = state.find_chunk_by_branch(head) if head else None
        if rebased is None:
            raise GitError(
                f"A rebase of {head or 'an unknown branch'} is in progress",
                "Finish or abort it before running merges",
            )

        logger.info("Continuing the pending rebase of {branch}", branch=rebased.branch)
        conflicts = self.git.finish_rebase(root)
        if not conflicts:
            return None

        # a stack rebase names its top branch, the stop can be any chunk below it
        chunk = self.stack.stopped_chunk(state, root) or rebased

        outcomes = []
        for other in state.chunks:
            if other.name == chunk.name:
                outcomes.append(
                    ChunkOutcome(
                        chunk.name,
                        chunk.branch,
                        OutcomeStatus.CONFLICT,
                        "Resolve the conflicts, `git add` them and run `merges sync` again",
                        conflicts=conflicts,
                    )
                )
            else:
                outcomes.append(skipped(other, f"Waiting on '{chunk.name}'"))
        return outcomes
