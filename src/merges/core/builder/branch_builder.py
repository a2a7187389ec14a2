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
Materializes a validated chunk plan as branches, all or nothing.

Every chunk branch starts at the merge base of the base and source branches
and receives exactly one commit whose tree is the merge base plus the chunk's
files taken from the source branch. If any chunk fails, every branch (and
worktree) created by the same call is removed again and the caller never
persists the plan.
"""

from pathlib import Path

from loguru import logger

from merges.core.exceptions import GitError, TransactionError, mergesError
from merges.core.git_commands.git_commands import GitCommands
from merges.core.state.models import Chunk, ChunkProposal, MergesState
from merges.core.state.naming import (
    chunk_branch_name,
    next_chunk_index,
    slugify_chunk_name,
)
from merges.core.workspace.workspace import Workspace, WorkspaceProvider


def chunk_commit_message(
    index: int, name: str, files: list[str], prefix: str | None = None
) -> str:
    subject = f"feat({slugify_chunk_name(name)}): chunk {index} - {name}"
    if prefix:
        subject = f"{prefix} {subject}"
    return subject + "\n\nFiles:\n" + "\n".join(files)


def stage_source_files(
    git_commands: GitCommands,
    cwd: Path,
    source_ref: str,
    files: list[str],
    statuses: dict[str, str],
) -> None:
    """Make the index (and work tree) of ``cwd`` match ``source_ref`` for ``files``."""
    deleted = [f for f in files if statuses.get(f) == "D"]
    present = [f for f in files if statuses.get(f) != "D"]
    if present:
        git_commands.checkout_paths(source_ref, present, cwd=cwd)
    if deleted:
        git_commands.remove_paths(deleted, cwd=cwd)


class BranchBuilder:
    def __init__(self, git_commands: GitCommands, workspaces: WorkspaceProvider):
        self.git = git_commands
        self.workspaces = workspaces

    def build(
        self,
        state: MergesState,
        proposals: list[ChunkProposal],
        statuses: dict[str, str],
    ) -> list[Chunk]:
        start = self.git.get_merge_base(state.base_branch, state.source_branch)
        first_index = next_chunk_index(state)
        logger.debug(
            "Building {count} chunk branches from {start}",
            count=len(proposals),
            start=start[:7],
        )

        created: list[tuple[str, Workspace]] = []
        chunks = []
        try:
            for offset, proposal in enumerate(proposals):
                index = first_index + offset
                branch = chunk_branch_name(state.source_branch, index, proposal.name)
                if self.git.branch_exists(branch):
                    raise GitError(f"Branch {branch} already exists")

                workspace = self.workspaces.for_branch(branch)
                created.append((branch, workspace))
                workspace.create_branch(branch, start)

                files = sorted(proposal.files)
                with workspace.on_branch(branch) as cwd:
                    stage_source_files(
                        self.git, cwd, state.source_branch, files, statuses
                    )
                    self.git.commit(
                        chunk_commit_message(
                            index, proposal.name, files, state.commit_prefix
                        ),
                        cwd=cwd,
                    )

                chunks.append(Chunk(name=proposal.name, branch=branch, files=files))
                logger.info(
                    "  [green]✓[/green] {name} → {branch} ({count} files)",
                    name=proposal.name,
                    branch=branch,
                    count=len(files),
                )
        except Exception as e:
            self._rollback(created)
            if isinstance(e, mergesError):
                raise TransactionError(
                    f"Split failed, rolled back {len(created)} branch(es): {e.message}",
                    e.details,
                ) from e
            raise

        self.workspaces.restore()
        return chunks

    def _rollback(self, created: list[tuple[str, Workspace]]) -> None:
        logger.warning(
            "Rolling back {count} branch(es) created by this split", count=len(created)
        )
        self.workspaces.restore(force=True)
        for branch, workspace in reversed(created):
            try:
                workspace.discard(branch, force=True)
            except GitError as e:
                logger.error(
                    "Could not remove {branch} during rollback: {message} {details}",
                    branch=branch,
                    message=e.message,
                    details=e.details or "",
                )
