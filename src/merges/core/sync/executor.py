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


from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor

from loguru import logger

from merges.core.data.results import ChunkOutcome, OutcomeStatus
from merges.core.exceptions import mergesError
from merges.core.state.models import Chunk

ChunkTask = Callable[[Chunk], ChunkOutcome]


def run_guarded(chunk: Chunk, task: ChunkTask) -> ChunkOutcome:
    """Run one chunk's task, turning a merges failure into a failed outcome."""
    try:
        return task(chunk)
    except mergesError as e:
        logger.error(
            "Chunk {chunk} failed: {message}", chunk=chunk.name, message=e.message
        )
        if e.details:
            logger.debug("{details}", details=e.details)
        message = e.message if not e.details else f"{e.message}: {e.details}"
        return ChunkOutcome(chunk.name, chunk.branch, OutcomeStatus.FAILED, message)


def skipped(chunk: Chunk, reason: str) -> ChunkOutcome:
    return ChunkOutcome(chunk.name, chunk.branch, OutcomeStatus.SKIPPED, reason)


def run_for_chunks(
    chunks: list[Chunk],
    task: ChunkTask,
    parallel: bool = False,
    max_workers: int = 4,
    halt_on_conflict: bool = False,
) -> list[ChunkOutcome]:
    """
    Run ``task`` for every chunk and collect the outcomes in chunk order.

    Sequentially, a conflict can halt the remaining chunks (they are
    reported as skipped) because the shared working directory is then busy
    with the stopped rebase. In parallel every task runs to completion and
    the results are gathered once all of them have finished.
    """
    if parallel and len(chunks) > 1:
        with ThreadPoolExecutor(max_workers=max(1, max_workers)) as pool:
            futures = [pool.submit(run_guarded, chunk, task) for chunk in chunks]
            return [future.result() for future in futures]

    outcomes = []
    halted_by = None
    for chunk in chunks:
        if halted_by is not None:
            outcomes.append(
                skipped(chunk, f"Not attempted: rebase of '{halted_by}' needs resolving")
            )
            continue
        outcome = run_guarded(chunk, task)
        outcomes.append(outcome)
        if halt_on_conflict and outcome.status is OutcomeStatus.CONFLICT:
            halted_by = chunk.name
    return outcomes
