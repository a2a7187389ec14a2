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
Single-chunk edits: add files to a chunk, move a file between chunks.

Both operations rewrite a chunk's single commit in place (amend) and only
touch the plan after the branch work succeeded. Under the stacked strategy,
chunks sitting on top of an edited chunk are carried forward as part of the
same operation. Any failure puts every touched branch back on the commit it
had before, so a file never ends up in zero or two chunks.
"""

from dataclasses import asdict, dataclass, field

from loguru import logger

from merges.core.builder.branch_builder import stage_source_files
from merges.core.data.results import OutcomeStatus
from merges.core.exceptions import (
    RebaseConflictError,
    TransactionError,
    ValidationError,
    mergesError,
)
from merges.core.git_commands.git_commands import GitCommands
from merges.core.stack.stack_manager import StackManager
from merges.core.state.models import Chunk, MergesState, Strategy
from merges.core.validation import find_chunk, validate_file_list
from merges.core.workspace.workspace import WorkspaceProvider


@dataclass
class AddResult:
    chunk: str
    added: list[str] = field(default_factory=list)
    updated: list[str] = field(default_factory=list)
    unchanged: list[str] = field(default_factory=list)
    committed: bool = False
    restacked: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class MoveResult:
    file: str
    from_chunk: str
    to_chunk: str
    restacked: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


class ChunkEditor:
    def __init__(
        self,
        git_commands: GitCommands,
        workspaces: WorkspaceProvider,
        stack: StackManager,
    ):
        self.git = git_commands
        self.workspaces = workspaces
        self.stack = stack

    # ------------------------------------------------------------------
    # add
    # ------------------------------------------------------------------

    def add_files(
        self, state: MergesState, chunk_name: str, files: list[str]
    ) -> AddResult:
        chunk = find_chunk(state, chunk_name)
        files = validate_file_list(files)
        statuses = self._changed(state)
        self._check_changed(files, statuses)

        owners = state.assigned_files()
        elsewhere = [f for f in files if owners.get(f) not in (None, chunk.name)]
        if elsewhere:
            details = ", ".join(f"{f} (in '{owners[f]}')" for f in elsewhere)
            raise ValidationError(
                "Files already belong to another chunk",
                f"{details}. Use `merges move` to reassign them",
            )

        self._require_clean_workspace()
        index = state.index_of(chunk.name)
        restack = self._restacks(state)
        snapshot = self._snapshot(state)

        try:
            result = self._add_to_branch(state, chunk, files, statuses)
            if result.committed and restack:
                result.restacked = self._restack(state, index + 1)
        except mergesError as e:
            self._restore(snapshot)
            raise TransactionError(
                f"Adding files to '{chunk.name}' failed, branches restored: {e.message}",
                e.details,
            ) from e
        finally:
            self.workspaces.restore()

        result.added = [f for f in files if f not in chunk.files]
        chunk.files = sorted(set(chunk.files) | set(files))
        return result

    def _add_to_branch(
        self,
        state: MergesState,
        chunk: Chunk,
        files: list[str],
        statuses: dict[str, str],
    ) -> AddResult:
        result = AddResult(chunk=chunk.name)
        for path in files:
            if path in chunk.files and self._matches_source(state, chunk, path):
                result.unchanged.append(path)
            else:
                result.updated.append(path)

        if not result.updated:
            logger.info(
                "All files already in '{chunk}', nothing to do", chunk=chunk.name
            )
            return result

        workspace = self.workspaces.for_branch(chunk.branch)
        with workspace.on_branch(chunk.branch) as cwd:
            stage_source_files(
                self.git, cwd, state.source_branch, result.updated, statuses
            )
            if self.git.has_staged_changes(cwd):
                self.git.amend(cwd)
                result.committed = True
            elif any(path not in chunk.files for path in result.updated):
                # content only reachable through a parent chunk: the commit
                # would not own the change
                raise ValidationError(
                    f"'{chunk.name}' already gets these changes from a chunk below it",
                    ", ".join(result.updated),
                )

        if result.committed:
            logger.info(
                "  [green]✓[/green] amended {branch} with {count} file(s)",
                branch=chunk.branch,
                count=len(result.updated),
            )
        return result

    def _matches_source(self, state: MergesState, chunk: Chunk, path: str) -> bool:
        return self.git.get_blob_id(chunk.branch, path) == self.git.get_blob_id(
            state.source_branch, path
        )

    # ------------------------------------------------------------------
    # move
    # ------------------------------------------------------------------

    def move_file(
        self, state: MergesState, path: str, from_name: str, to_name: str
    ) -> MoveResult:
        source = find_chunk(state, from_name)
        target = find_chunk(state, to_name)
        path = path.strip()
        if source.name == target.name:
            raise ValidationError(f"'{path}' is already in '{target.name}'")
        if path not in source.files:
            raise ValidationError(
                f"'{path}' is not in chunk '{source.name}'",
                f"Files in '{source.name}': {', '.join(source.files) or '(none)'}",
            )
        statuses = self._changed(state)
        self._check_changed([path], statuses)
        self._require_clean_workspace()

        from_index = state.index_of(source.name)
        to_index = state.index_of(target.name)
        restack = self._restacks(state)
        snapshot = self._snapshot(state)
        result = MoveResult(file=path, from_chunk=source.name, to_chunk=target.name)

        remaining = [f for f in source.files if f != path]
        try:
            self._remove_from_branch(source, path, allow_empty=not remaining)
            if restack and to_index > from_index:
                # the target must stop inheriting the file before it can own it
                result.restacked += self._restack(state, from_index + 1)

            added = self._add_to_branch(state, target, [path], statuses)
            if not added.committed:
                raise ValidationError(f"'{path}' could not be added to '{target.name}'")

            if restack:
                result.restacked += self._restack(state, min(from_index, to_index) + 1)
        except mergesError as e:
            self._restore(snapshot)
            raise TransactionError(
                f"Moving '{path}' failed, it stays in '{source.name}': {e.message}",
                e.details,
            ) from e
        finally:
            self.workspaces.restore()

        source.files = remaining
        target.files = sorted(set(target.files) | {path})
        result.restacked = sorted(set(result.restacked))
        return result

    def _remove_from_branch(self, chunk: Chunk, path: str, allow_empty: bool) -> None:
        workspace = self.workspaces.for_branch(chunk.branch)
        with workspace.on_branch(chunk.branch) as cwd:
            parent = f"{chunk.branch}~1"
            if self.git.get_blob_id(parent, path) is not None:
                self.git.checkout_paths(parent, [path], cwd=cwd)
            else:
                self.git.remove_paths([path], cwd=cwd)
            self.git.amend(cwd, allow_empty=allow_empty)
        logger.info(
            "  [green]✓[/green] removed {path} from {branch}",
            path=path,
            branch=chunk.branch,
        )

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------

    def _changed(self, state: MergesState) -> dict[str, str]:
        return self.git.get_changed_file_status(state.base_branch, state.source_branch)

    @staticmethod
    def _check_changed(files: list[str], statuses: dict[str, str]) -> None:
        unknown = [f for f in files if f not in statuses]
        if unknown:
            raise ValidationError(
                "Files are not changed on the source branch", ", ".join(unknown)
            )

    def _require_clean_workspace(self) -> None:
        if self.workspaces.isolated:
            return
        if self.git.has_uncommitted_changes(self.workspaces.shared.path):
            raise ValidationError(
                "Working directory has uncommitted changes",
                "Commit or stash them before editing chunks",
            )

    def _restacks(self, state: MergesState) -> bool:
        return (
            state.effective_strategy() is Strategy.STACKED
            and len(state.chunks) > 1
            and self.stack.is_linear(state)
        )

    def _restack(self, state: MergesState, start: int) -> list[str]:
        if start >= len(state.chunks):
            return []
        outcomes = self.stack.propagate(state, state.base_branch, start=start)
        failed = [o for o in outcomes if not o.ok]
        if failed:
            raise RebaseConflictError(
                f"Could not carry '{failed[0].chunk}' forward",
                paths=failed[0].conflicts,
                details=failed[0].message,
            )
        return [o.chunk for o in outcomes if o.status is OutcomeStatus.REBASED]

    def _snapshot(self, state: MergesState) -> dict[str, str]:
        return {c.branch: self.git.get_commit_hash(c.branch) for c in state.chunks}

    def _restore(self, snapshot: dict[str, str]) -> None:
        """Put every chunk branch back on the commit recorded in ``snapshot``."""
        for branch, sha in snapshot.items():
            workspace = self.workspaces.for_branch(branch)
            cwd = workspace.path
            if self.git.is_rebase_in_progress(cwd):
                self.git.rebase_abort(cwd)
            if self.git.get_commit_hash(branch) == sha:
                continue
            if workspace.isolated:
                self.git.reset_hard(sha, cwd=cwd)
            elif self.workspaces.shared.current_branch() == branch:
                self.git.reset_hard(sha, cwd=cwd)
            else:
                self.git.force_branch(branch, sha)
            logger.debug("Restored {branch} to {sha}", branch=branch, sha=sha[:7])
