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

import threading

from merges.core.data.results import ChunkOutcome, OperationReport, OutcomeStatus
from merges.core.exceptions import GitError
from merges.core.state.models import Chunk
from merges.core.sync.executor import run_for_chunks, run_guarded

CHUNKS = [Chunk(name=n, branch=f"f-chunk-{i}-{n}") for i, n in enumerate("abcd", 1)]


def outcome(chunk, status=OutcomeStatus.REBASED, **kwargs):
    return ChunkOutcome(chunk.name, chunk.branch, status, **kwargs)


def test_run_guarded_turns_merges_error_into_failed_outcome():
    def task(chunk):
        raise GitError("Failed to push", "rejected")

    result = run_guarded(CHUNKS[0], task)

    assert result.status is OutcomeStatus.FAILED
    assert result.message == "Failed to push: rejected"
    assert not result.ok


def test_sequential_conflict_halts_remaining_chunks():
    def task(chunk):
        if chunk.name == "b":
            return outcome(chunk, OutcomeStatus.CONFLICT, conflicts=["x.py"])
        return outcome(chunk)

    outcomes = run_for_chunks(CHUNKS, task, halt_on_conflict=True)

    assert [o.status for o in outcomes] == [
        OutcomeStatus.REBASED,
        OutcomeStatus.CONFLICT,
        OutcomeStatus.SKIPPED,
        OutcomeStatus.SKIPPED,
    ]
    assert "'b'" in outcomes[2].message


def test_failure_does_not_stop_independent_chunks():
    def task(chunk):
        if chunk.name == "a":
            raise GitError("boom")
        return outcome(chunk)

    outcomes = run_for_chunks(CHUNKS, task)

    assert [o.ok for o in outcomes] == [False, True, True, True]


def test_parallel_results_keep_chunk_order():
    started = threading.Barrier(2)

    def task(chunk):
        if chunk.name in ("a", "b"):
            # both first tasks must be running at the same time
            started.wait(timeout=5)
        return outcome(chunk)

    outcomes = run_for_chunks(CHUNKS, task, parallel=True, max_workers=4)

    assert [o.chunk for o in outcomes] == ["a", "b", "c", "d"]
    assert all(o.ok for o in outcomes)


def test_report_is_conjunction_of_outcomes():
    report = OperationReport("sync", [outcome(CHUNKS[0]), outcome(CHUNKS[1], OutcomeStatus.SKIPPED)])

    assert not report.ok
    assert [o.chunk for o in report.failed] == ["b"]
    assert report.outcome_for("a").ok
    assert report.outcome_for("z") is None

    data = report.to_dict()
    assert data["ok"] is False
    assert data["chunks"][0] == {
        "chunk": "a",
        "branch": "f-chunk-1-a",
        "status": "rebased",
        "ok": True,
    }
