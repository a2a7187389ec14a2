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
PR base targets and rebase propagation for the two strategies.

Every chunk branch carries exactly one commit of its own, so moving a chunk
is always ``git rebase --onto <target> <branch>~1 <branch>``:

* independent: the target of every chunk is the base ref.
* stacked: chunk 1 targets the base ref, chunk i targets chunk i-1's branch.
  Walking the chunks in order therefore carries every descendant forward
  once its predecessor moved.

When the stack is already linear and the shared working directory is in use,
the whole stack is moved by a single ``git rebase --update-refs`` of the top
branch instead of the walk.
"""

from pathlib import Path

from loguru import logger

from merges.constants import UPDATE_REFS_MIN_GIT_VERSION
from merges.core.data.results import ChunkOutcome, OutcomeStatus
from merges.core.exceptions import GitError
from merges.core.git_commands.git_commands import GitCommands
from merges.core.state.models import Chunk, MergesState, Strategy
from merges.core.sync.conflict_memory import ConflictMemory, NoConflictMemory
from merges.core.sync.executor import run_guarded, skipped
from merges.core.workspace.workspace import WorkspaceProvider

_RESOLVE_HINT = "Resolve the conflicts, `git add` them and run `merges sync` again"


class StackManager:
    def __init__(
        self,
        git_commands: GitCommands,
        workspaces: WorkspaceProvider,
        conflict_memory: ConflictMemory | None = None,
        update_refs: bool | None = None,
    ):
        self.git = git_commands
        self.workspaces = workspaces
        self.conflict_memory = conflict_memory or NoConflictMemory()
        self._update_refs = update_refs

    @property
    def update_refs_supported(self) -> bool:
        if self._update_refs is None:
            self._update_refs = self.git.supports_update_refs(
                UPDATE_REFS_MIN_GIT_VERSION
            )
        return self._update_refs

    # ------------------------------------------------------------------
    # graph
    # ------------------------------------------------------------------

    def pr_base(self, state: MergesState, index: int) -> str:
        """Branch the PR of chunk ``index`` should target."""
        if state.effective_strategy() is Strategy.STACKED and index > 0:
            return state.chunks[index - 1].branch
        return state.base_branch

    def rebase_target(self, state: MergesState, index: int, base_ref: str) -> str:
        if state.effective_strategy() is Strategy.STACKED and index > 0:
            return state.chunks[index - 1].branch
        return base_ref

    def stopped_chunk(self, state: MergesState, cwd: Path) -> Chunk | None:
        """
        The chunk whose commit a stopped rebase in ``cwd`` is replaying.

        Branch refs only move once the rebase finishes (``--update-refs``
        included), so the commit in REBASE_HEAD is still a chunk tip.
        """
        stopped = self.git.try_resolve_commit("REBASE_HEAD", cwd=cwd)
        if stopped is None:
            return None
        for chunk in state.chunks:
            if self.git.try_resolve_commit(chunk.branch) == stopped:
                return chunk
        return None

    def is_linear(self, state: MergesState) -> bool:
        """True when every chunk's own commit sits directly on its predecessor's tip."""
        for previous, chunk in zip(state.chunks, state.chunks[1:]):
            parent = self.git.try_resolve_commit(f"{chunk.branch}~1")
            tip = self.git.try_resolve_commit(previous.branch)
            if parent is None or parent != tip:
                return False
        return True

    # ------------------------------------------------------------------
    # rebasing
    # ------------------------------------------------------------------

    def rebase_chunk(self, chunk: Chunk, onto: str) -> ChunkOutcome:
        """Move ``chunk``'s own commit on top of ``onto``."""
        workspace = self.workspaces.for_branch(chunk.branch)
        onto_sha = self.git.get_commit_hash(onto)

        if workspace.isolated and self.git.is_rebase_in_progress(workspace.path):
            conflicts = self.git.finish_rebase(workspace.path)
            if conflicts:
                return self._conflict(chunk, conflicts)

        parent = self.git.try_resolve_commit(f"{chunk.branch}~1")
        if parent is None:
            raise GitError(f"Branch {chunk.branch} has no chunk commit")
        if parent == onto_sha:
            logger.debug("{branch} already on {onto}", branch=chunk.branch, onto=onto)
            return ChunkOutcome(chunk.name, chunk.branch, OutcomeStatus.UP_TO_DATE)

        with workspace.on_branch(chunk.branch) as cwd:
            result = self.git.rebase_onto(onto_sha, parent, chunk.branch, cwd=cwd)
            if result.returncode == 0:
                return self._rebased(chunk, onto)
            if not self.git.is_rebase_in_progress(cwd):
                raise GitError(
                    f"Rebase of {chunk.branch} failed",
                    (result.stderr or result.stdout).strip(),
                )
            if self.conflict_memory.try_resolve(self.git, cwd):
                return self._rebased(chunk, onto)
            return self._conflict(chunk, self.git.get_conflicted_paths(cwd))

    def propagate(
        self, state: MergesState, base_ref: str, start: int = 0
    ) -> list[ChunkOutcome]:
        """
        Carry chunks ``start..N`` forward onto their (possibly updated) predecessors.

        Stops at the first chunk that does not succeed; its descendants are
        reported as skipped since they cannot be placed on top of it.
        """
        chunks = state.chunks
        if start == 0 and self._can_move_stack_at_once(state):
            return self._rebase_stack_at_once(state, base_ref)

        outcomes = []
        blocked_by = None
        for index in range(start, len(chunks)):
            chunk = chunks[index]
            if blocked_by is not None:
                outcomes.append(skipped(chunk, f"Waiting on '{blocked_by}'"))
                continue
            onto = self.rebase_target(state, index, base_ref)
            outcome = run_guarded(chunk, lambda c, onto=onto: self.rebase_chunk(c, onto))
            outcomes.append(outcome)
            if not outcome.ok:
                blocked_by = chunk.name
        return outcomes

    def _can_move_stack_at_once(self, state: MergesState) -> bool:
        return (
            len(state.chunks) > 1
            and not self.workspaces.isolated
            and self.update_refs_supported
            and self.is_linear(state)
        )

    def _rebase_stack_at_once(
        self, state: MergesState, base_ref: str
    ) -> list[ChunkOutcome]:
        first, top = state.chunks[0], state.chunks[-1]
        onto_sha = self.git.get_commit_hash(base_ref)
        upstream = self.git.get_commit_hash(f"{first.branch}~1")

        if upstream == onto_sha:
            return [
                ChunkOutcome(c.name, c.branch, OutcomeStatus.UP_TO_DATE)
                for c in state.chunks
            ]

        logger.debug(
            "Moving {count} stacked chunks with --update-refs", count=len(state.chunks)
        )

        workspace = self.workspaces.shared
        with workspace.on_branch(top.branch) as cwd:
            result = self.git.rebase_onto(
                onto_sha, upstream, top.branch, cwd=cwd, update_refs=True
            )
            if result.returncode == 0 or (
                self.git.is_rebase_in_progress(cwd)
                and self.conflict_memory.try_resolve(self.git, cwd)
            ):
                return [self._rebased(c, base_ref) for c in state.chunks]
            if not self.git.is_rebase_in_progress(cwd):
                raise GitError(
                    f"Rebase of the stack onto {base_ref} failed",
                    (result.stderr or result.stdout).strip(),
                )

            stopped_at = self.stopped_chunk(state, cwd)
            conflicts = self.git.get_conflicted_paths(cwd)

        outcomes = []
        for chunk in state.chunks:
            if stopped_at is None or chunk.name == stopped_at.name:
                outcomes.append(self._conflict(chunk, conflicts))
                stopped_at = chunk
            else:
                outcomes.append(
                    skipped(chunk, f"Stack rebase stopped at '{stopped_at.name}'")
                )
        return outcomes

    def _rebased(self, chunk: Chunk, onto: str) -> ChunkOutcome:
        logger.info(
            "  [green]✓[/green] {branch} rebased onto {onto}",
            branch=chunk.branch,
            onto=onto,
        )
        return ChunkOutcome(chunk.name, chunk.branch, OutcomeStatus.REBASED)

    def _conflict(self, chunk: Chunk, conflicts: list[str]) -> ChunkOutcome:
        logger.warning(
            "  [yellow]✗[/yellow] {branch} has conflicts: {paths}",
            branch=chunk.branch,
            paths=", ".join(conflicts) or "(unknown)",
        )
        return ChunkOutcome(
            chunk.name,
            chunk.branch,
            OutcomeStatus.CONFLICT,
            _RESOLVE_HINT,
            conflicts=list(conflicts),
        )
