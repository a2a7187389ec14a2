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
Publishes chunk branches and keeps one pull request per chunk.

A push first syncs the plan, then for each chunk pushes the branch with
``--force-with-lease`` and creates or retargets its PR. Under the stacked
strategy a chunk that could not be synced or pushed holds back every chunk
above it; under the independent strategy chunks fail on their own.
"""

from loguru import logger

from merges.context import GlobalContext
from merges.core.data.results import ChunkOutcome, OperationReport, OutcomeStatus
from merges.core.exceptions import ValidationError
from merges.core.remote.interface import PullRequest, RemoteHost
from merges.core.stack.stack_manager import StackManager
from merges.core.state.models import Chunk, MergesState, Strategy
from merges.core.state.store import StateStore
from merges.core.sync.executor import run_for_chunks, run_guarded, skipped
from merges.pipelines.engine_init import create_engine, create_remote_host


def pull_request_title(state: MergesState, chunk: Chunk) -> str:
    if state.commit_prefix:
        return f"{state.commit_prefix} {chunk.name}"
    return chunk.name


def pull_request_body(state: MergesState, index: int) -> str:
    chunk = state.chunks[index]
    lines = [
        f"Part {index + 1} of {len(state.chunks)} split from `{state.source_branch}`.",
    ]
    if state.effective_strategy() is Strategy.STACKED and index > 0:
        previous = state.chunks[index - 1]
        lines.append(f"Stacked on `{previous.branch}` ({previous.name}).")
    lines += ["", "Files:"]
    lines += [f"- `{path}`" for path in chunk.files]
    return "\n".join(lines)


class PushPipeline:
    def __init__(
        self,
        global_context: GlobalContext,
        store: StateStore,
        remote: RemoteHost | None = None,
    ):
        self.global_context = global_context
        self.store = store
        self.remote = remote

    def run(self, strategy: Strategy | None = None) -> OperationReport:
        state = self.store.load()
        if not state.chunks:
            raise ValidationError("No chunks to push", "Run `merges split` first")

        if strategy is not None:
            state.strategy = strategy
        elif state.strategy is None:
            state.strategy = Strategy.STACKED
        self.store.save(state)

        remote = self.remote or create_remote_host(self.global_context, state)
        try:
            return self._push_all(state, remote)
        finally:
            if self.remote is None:
                remote.close()

    def _push_all(self, state: MergesState, remote: RemoteHost) -> OperationReport:
        config = self.global_context.config
        engine = create_engine(self.global_context, state)
        base_ref = engine.sync.resolve_base_ref(state)
        synced = engine.sync.sync(state, base_ref)

        def push_one(chunk: Chunk) -> ChunkOutcome:
            prior = synced.outcome_for(chunk.name)
            if prior is not None and not prior.ok:
                return prior
            return self._push_chunk(state, remote, engine.stack, chunk)

        if state.effective_strategy() is Strategy.STACKED:
            outcomes = []
            blocked_by = None
            for chunk in state.chunks:
                if blocked_by is not None:
                    outcomes.append(skipped(chunk, f"Waiting on '{blocked_by}'"))
                    continue
                outcome = run_guarded(chunk, push_one)
                outcomes.append(outcome)
                if not outcome.ok:
                    blocked_by = chunk.name
        else:
            outcomes = run_for_chunks(
                state.chunks,
                push_one,
                parallel=config.parallel,
                max_workers=config.max_workers,
            )

        for outcome in outcomes:
            if outcome.pr_number is None:
                continue
            chunk = state.find_chunk(outcome.chunk)
            chunk.pr_number = outcome.pr_number
            chunk.pr_url = outcome.pr_url
        self.store.save(state)
        return OperationReport("push", outcomes)

    def _push_chunk(
        self,
        state: MergesState,
        remote: RemoteHost,
        stack: StackManager,
        chunk: Chunk,
    ) -> ChunkOutcome:
        pushed = self._push_branch(chunk)
        index = state.index_of(chunk.name)
        pr, action = self._ensure_pull_request(state, index, remote, stack)
        message = f"{'pushed' if pushed else 'branch unchanged'}, {action}"
        logger.info(
            "  [green]✓[/green] {branch}: {message}", branch=chunk.branch, message=message
        )
        return ChunkOutcome(
            chunk.name,
            chunk.branch,
            OutcomeStatus.PUSHED,
            message,
            pr_number=pr.number,
            pr_url=pr.url,
        )

    def _push_branch(self, chunk: Chunk) -> bool:
        git = self.global_context.git_commands
        remote_name = self.global_context.config.remote_name
        local = git.get_commit_hash(chunk.branch)
        if git.try_resolve_commit(f"{remote_name}/{chunk.branch}") == local:
            logger.debug("{branch} already on {remote}", branch=chunk.branch, remote=remote_name)
            return False
        git.push_with_lease(remote_name, chunk.branch)
        return True

    def _ensure_pull_request(
        self,
        state: MergesState,
        index: int,
        remote: RemoteHost,
        stack: StackManager,
    ) -> tuple[PullRequest, str]:
        chunk = state.chunks[index]
        base = stack.pr_base(state, index)

        if chunk.pr_number is None:
            pr = remote.create_pull_request(
                pull_request_title(state, chunk),
                head=chunk.branch,
                base=base,
                body=pull_request_body(state, index),
            )
            return pr, f"opened PR #{pr.number}"

        pr = remote.get_pull_request(chunk.pr_number)
        if pr.status != "open":
            return pr, f"PR #{pr.number} is {pr.status}"
        if pr.base_ref != base:
            pr = remote.update_pull_request_base(pr.number, base)
            return pr, f"retargeted PR #{pr.number} to {base}"
        return pr, f"PR #{pr.number} up to date"
