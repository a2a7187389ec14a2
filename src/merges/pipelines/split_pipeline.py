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
Two-phase split: discover what can be split, then materialize an approved plan.

Discovery is read-only. Applying validates the whole plan before the first
branch is created and only persists it once every chunk branch exists.
"""

from dataclasses import dataclass, field

from loguru import logger
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from merges.context import GlobalContext
from merges.core.builder.branch_builder import BranchBuilder
from merges.core.exceptions import ValidationError
from merges.core.grouper.directory_grouper import DirectoryGrouper
from merges.core.state.models import Chunk, ChunkProposal, MergesState
from merges.core.state.store import StateStore
from merges.core.validation import validate_plan
from merges.pipelines.engine_init import create_engine

_PLAN_ADAPTER = TypeAdapter(list[ChunkProposal])

PLAN_INSTRUCTIONS = (
    "Group the unassigned files into reviewable chunks and pass them back as "
    '[{"name": "...", "files": ["..."]}]. Every file may appear in one chunk '
    "only. Under the stacked strategy the order of the list is the order of "
    "the stack, so put foundations (models, schemas) before their consumers."
)


def plan_from_data(data) -> list[ChunkProposal]:
    """Validate a decoded plan of the form ``[{"name": ..., "files": [...]}]``."""
    try:
        return _PLAN_ADAPTER.validate_python(data)
    except PydanticValidationError as e:
        raise ValidationError(
            "Plan must be a list of {name, files} objects", str(e)
        ) from e


@dataclass
class SplitDiscovery:
    changed_files: list[str]
    unassigned_files: list[str]
    suggested: list[ChunkProposal] = field(default_factory=list)
    instructions: str = PLAN_INSTRUCTIONS

    def to_dict(self) -> dict:
        return {
            "changed_files": self.changed_files,
            "unassigned_files": self.unassigned_files,
            "suggested_plan": [p.model_dump() for p in self.suggested],
            "instructions": self.instructions,
        }


class SplitPipeline:
    def __init__(self, global_context: GlobalContext, store: StateStore):
        self.global_context = global_context
        self.store = store
        config = global_context.config
        self.grouper = DirectoryGrouper(
            root_group_name=config.root_group_name,
            root_files_separate=config.root_files_separate,
        )

    def _statuses(self, state: MergesState) -> dict[str, str]:
        return self.global_context.git_commands.get_changed_file_status(
            state.base_branch, state.source_branch
        )

    def discover(self) -> SplitDiscovery:
        state = self.store.load()
        statuses = self._statuses(state)
        changed = sorted(statuses)
        owners = state.assigned_files()
        unassigned = [f for f in changed if f not in owners]
        logger.debug(
            "{changed} changed files, {unassigned} unassigned",
            changed=len(changed),
            unassigned=len(unassigned),
        )
        return SplitDiscovery(
            changed_files=changed,
            unassigned_files=unassigned,
            suggested=self.grouper.group(unassigned),
        )

    def auto_plan(self) -> list[ChunkProposal]:
        discovery = self.discover()
        if not discovery.unassigned_files:
            raise ValidationError(
                "Every changed file already belongs to a chunk",
                "Nothing left to split",
            )
        return discovery.suggested

    def apply(self, proposals: list[ChunkProposal]) -> list[Chunk]:
        state = self.store.load()
        statuses = self._statuses(state)
        proposals = validate_plan(proposals, sorted(statuses), state)

        git = self.global_context.git_commands
        engine = create_engine(self.global_context, state)
        if not engine.workspaces.isolated and git.has_uncommitted_changes(
            engine.workspaces.shared.path
        ):
            raise ValidationError(
                "Working directory has uncommitted changes",
                "Commit or stash them before splitting",
            )

        builder = BranchBuilder(git, engine.workspaces)
        chunks = builder.build(state, proposals, statuses)

        state.chunks.extend(chunks)
        self.store.save(state)
        return chunks
