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
Removes chunk branches, their worktrees and their entries in the plan.

With ``merged_only`` just the chunks whose PR has been merged are selected;
a chunk whose PR state cannot be read is kept. A chunk leaves the plan only
when its local branch (and worktree) could be removed.
"""

from dataclasses import dataclass, field

from loguru import logger

from merges.context import CleanContext, GlobalContext
from merges.core.exceptions import GitError, RemoteError
from merges.core.remote.interface import RemoteHost
from merges.core.remote.status_aggregator import StatusAggregator
from merges.core.state.models import Chunk, MergesState
from merges.core.state.store import StateStore
from merges.pipelines.engine_init import create_engine, create_remote_host


@dataclass
class CleanReport:
    selected: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)
    remaining: list[str] = field(default_factory=list)
    dry_run: bool = False

    @property
    def ok(self) -> bool:
        return not self.failed

    def to_dict(self) -> dict:
        return {
            "ok": self.ok,
            "dry_run": self.dry_run,
            "selected": self.selected,
            "removed": self.removed,
            "failed": self.failed,
            "remaining": self.remaining,
        }


class CleanPipeline:
    def __init__(
        self,
        global_context: GlobalContext,
        clean_context: CleanContext,
        store: StateStore,
        remote: RemoteHost | None = None,
    ):
        self.global_context = global_context
        self.clean_context = clean_context
        self.store = store
        self.remote = remote

    def select(self, state: MergesState, remote: RemoteHost | None) -> list[Chunk]:
        if not self.clean_context.merged_only:
            return list(state.chunks)

        aggregator = StatusAggregator(self.global_context.git_commands, remote)
        selected = []
        for chunk in state.chunks:
            if chunk.pr_number is None:
                continue
            try:
                pr_state = aggregator.pr_state(chunk)
            except RemoteError as e:
                logger.warning(
                    "Keeping {chunk}: PR #{number} unreadable ({message})",
                    chunk=chunk.name,
                    number=chunk.pr_number,
                    message=e.message,
                )
                continue
            if pr_state == "merged":
                selected.append(chunk)
        return selected

    def preview(self) -> list[Chunk]:
        """The chunks a real run would remove, without touching anything."""
        state = self.store.load()
        remote = self._open_remote(state)
        try:
            return self.select(state, remote)
        finally:
            self._close_remote(remote)

    def run(self) -> CleanReport:
        state = self.store.load()
        remote = self._open_remote(state)
        try:
            return self._clean(state, remote)
        finally:
            self._close_remote(remote)

    def _clean(self, state: MergesState, remote: RemoteHost | None) -> CleanReport:
        selected = self.select(state, remote)
        report = CleanReport(
            selected=[c.name for c in selected], dry_run=self.clean_context.dry_run
        )
        if self.clean_context.dry_run or not selected:
            report.remaining = state.chunk_names()
            return report

        git = self.global_context.git_commands
        doomed = {c.branch for c in selected}
        home = state.source_branch
        if home in doomed or not git.branch_exists(home):
            home = state.base_branch
        engine = create_engine(self.global_context, state, home=home)

        for chunk in selected:
            workspace = engine.workspaces.for_branch(chunk.branch)
            try:
                workspace.discard(chunk.branch, force=True)
            except GitError as e:
                logger.error(
                    "Could not remove {branch}: {message}",
                    branch=chunk.branch,
                    message=e.message,
                )
                report.failed[chunk.name] = e.message
                continue

            report.removed.append(chunk.name)
            logger.info("  [green]✓[/green] removed {branch}", branch=chunk.branch)

            if self.clean_context.delete_remote and remote is not None:
                try:
                    if remote.delete_branch(chunk.branch):
                        logger.info("    deleted remote branch {branch}", branch=chunk.branch)
                except RemoteError as e:
                    logger.warning(
                        "Remote branch {branch} kept: {message}",
                        branch=chunk.branch,
                        message=e.message,
                    )

        state.chunks = [c for c in state.chunks if c.name not in report.removed]
        self.store.save(state)
        report.remaining = state.chunk_names()
        return report

    def _open_remote(self, state: MergesState) -> RemoteHost | None:
        if self.remote is not None:
            return self.remote
        needs_remote = self.clean_context.merged_only or self.clean_context.delete_remote
        if not needs_remote:
            return None
        return create_remote_host(self.global_context, state, required=True)

    def _close_remote(self, remote: RemoteHost | None) -> None:
        if self.remote is None and remote is not None:
            remote.close()
