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
The merges operations as tools for a caller that cannot answer prompts.

Splitting is two-phase: ``merges_split`` without a plan returns the changed
files and a suggested grouping, the caller sends the plan back to apply it.
"""

from merges.constants import DEFAULT_BASE_BRANCH, STATE_FILE
from merges.context import CleanContext, GlobalContext, InitContext
from merges.core.data.results import ChunkOutcome, OperationReport, OutcomeStatus
from merges.core.remote.interface import RemoteHost
from merges.core.validation import validate_strategy
from merges.pipelines.clean_pipeline import CleanPipeline
from merges.pipelines.doctor_pipeline import DoctorPipeline
from merges.pipelines.edit_pipeline import ChunkEditPipeline
from merges.pipelines.engine_init import open_store
from merges.pipelines.init_pipeline import InitPipeline
from merges.pipelines.push_pipeline import PushPipeline
from merges.pipelines.split_pipeline import SplitPipeline, plan_from_data
from merges.pipelines.status_pipeline import StatusPipeline
from merges.pipelines.sync_pipeline import SyncPipeline

from .registry import Tool, ToolRegistry

_PLAN_SCHEMA = {
    "type": "array",
    "description": "Ordered chunks; omit to get the changed files and a suggested plan",
    "items": {
        "type": "object",
        "properties": {
            "name": {"type": "string"},
            "files": {"type": "array", "items": {"type": "string"}},
        },
        "required": ["name", "files"],
    },
}


def build_registry(
    global_context: GlobalContext, remote: RemoteHost | None = None
) -> ToolRegistry:
    """Register every merges tool against one repository."""

    def store():
        return open_store(global_context)

    def init(arguments: dict) -> dict:
        init_context = InitContext(
            base_branch=arguments.get("base") or DEFAULT_BASE_BRANCH,
            use_worktrees=bool(arguments.get("use_worktrees")),
            commit_prefix=arguments.get("commit_prefix"),
            force=bool(arguments.get("force")),
        )
        state = InitPipeline(global_context, init_context, store()).run()
        return {
            "ok": True,
            "state_file": STATE_FILE,
            "repo_owner": state.repo_owner,
            "repo_name": state.repo_name,
            "source_branch": state.source_branch,
            "base_branch": state.base_branch,
            "use_worktrees": state.use_worktrees,
        }

    def split(arguments: dict) -> dict:
        pipeline = SplitPipeline(global_context, store())
        if arguments.get("plan") is None:
            return {"ok": True, **pipeline.discover().to_dict()}

        chunks = pipeline.apply(plan_from_data(arguments["plan"]))
        outcomes = [
            ChunkOutcome(
                chunk.name,
                chunk.branch,
                OutcomeStatus.CREATED,
                f"{len(chunk.files)} file(s)",
            )
            for chunk in chunks
        ]
        return OperationReport("split", outcomes).to_dict()

    def push(arguments: dict) -> dict:
        strategy = validate_strategy(arguments.get("strategy"))
        return PushPipeline(global_context, store(), remote).run(strategy).to_dict()

    def sync(arguments: dict) -> dict:
        fetch = arguments.get("fetch", True)
        return SyncPipeline(global_context, store()).run(fetch=fetch).to_dict()

    def status(arguments: dict) -> dict:
        state, statuses = StatusPipeline(global_context, store(), remote).run(
            fetch=bool(arguments.get("fetch"))
        )
        return {
            "ok": True,
            "source_branch": state.source_branch,
            "base_branch": state.base_branch,
            "strategy": str(state.effective_strategy()),
            "chunks": [s.to_dict() for s in statuses],
        }

    def add(arguments: dict) -> dict:
        result = ChunkEditPipeline(global_context, store()).add(
            arguments["chunk"], arguments["files"]
        )
        return {"ok": True, **result.to_dict()}

    def move(arguments: dict) -> dict:
        result = ChunkEditPipeline(global_context, store()).move(
            arguments["file"], arguments["from_chunk"], arguments["to_chunk"]
        )
        return {"ok": True, **result.to_dict()}

    def clean(arguments: dict) -> dict:
        clean_context = CleanContext(
            merged_only=bool(arguments.get("merged")),
            delete_remote=bool(arguments.get("remote")),
            dry_run=bool(arguments.get("dry_run")),
        )
        return CleanPipeline(global_context, clean_context, store(), remote).run().to_dict()

    def doctor(arguments: dict) -> dict:
        report = DoctorPipeline(global_context, store()).run(
            repair=bool(arguments.get("repair"))
        )
        return {"ok": report.healthy, **report.to_dict()}

    registry = ToolRegistry()
    registry.register(
        Tool(
            "merges_init",
            "Start a chunk plan for the current branch. Resolves owner/repo from the remote.",
            init,
            {
                "base": {"type": "string", "description": "Base branch (default main)"},
                "use_worktrees": {"type": "boolean"},
                "commit_prefix": {"type": "string"},
                "force": {"type": "boolean", "description": "Overwrite an existing plan"},
            },
        )
    )
    registry.register(
        Tool(
            "merges_split",
            "Without a plan: list changed and unassigned files with a suggested plan. "
            "With a plan: create one branch per chunk, all or nothing.",
            split,
            {"plan": _PLAN_SCHEMA},
        )
    )
    registry.register(
        Tool(
            "merges_push",
            "Sync, push every chunk branch and create or retarget its pull request.",
            push,
            {"strategy": {"type": "string", "enum": ["stacked", "independent"]}},
        )
    )
    registry.register(
        Tool(
            "merges_sync",
            "Rebase every chunk branch onto the latest base branch.",
            sync,
            {"fetch": {"type": "boolean", "description": "Fetch first (default true)"}},
        )
    )
    registry.register(
        Tool(
            "merges_status",
            "Per chunk: sync state, PR, CI and review status.",
            status,
            {"fetch": {"type": "boolean"}},
        )
    )
    registry.register(
        Tool(
            "merges_add",
            "Add changed files to an existing chunk. Re-adding a file is a no-op.",
            add,
            {
                "chunk": {"type": "string"},
                "files": {"type": "array", "items": {"type": "string"}},
            },
            required=("chunk", "files"),
        )
    )
    registry.register(
        Tool(
            "merges_move",
            "Move one file from one chunk to another.",
            move,
            {
                "file": {"type": "string"},
                "from_chunk": {"type": "string"},
                "to_chunk": {"type": "string"},
            },
            required=("file", "from_chunk", "to_chunk"),
        )
    )
    registry.register(
        Tool(
            "merges_clean",
            "Delete chunk branches (only merged ones with merged=true) and drop them from the plan.",
            clean,
            {
                "merged": {"type": "boolean"},
                "remote": {"type": "boolean", "description": "Also delete remote branches"},
                "dry_run": {"type": "boolean"},
            },
        )
    )
    registry.register(
        Tool(
            "merges_doctor",
            "Check that the plan, branches and worktrees agree; optionally repair.",
            doctor,
            {"repair": {"type": "boolean"}},
        )
    )
    return registry
