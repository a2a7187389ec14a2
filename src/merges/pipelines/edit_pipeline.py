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


from merges.context import GlobalContext
from merges.core.mutations.chunk_editor import AddResult, ChunkEditor, MoveResult
from merges.core.state.store import StateStore
from merges.pipelines.engine_init import create_engine


class ChunkEditPipeline:
    """Loads the plan, edits one chunk's branch and persists the new file sets."""

    def __init__(self, global_context: GlobalContext, store: StateStore):
        self.global_context = global_context
        self.store = store

    def _editor(self, state) -> ChunkEditor:
        engine = create_engine(self.global_context, state)
        return ChunkEditor(engine.git, engine.workspaces, engine.stack)

    def add(self, chunk_name: str, files: list[str]) -> AddResult:
        state = self.store.load()
        result = self._editor(state).add_files(state, chunk_name, files)
        self.store.save(state)
        return result

    def move(self, path: str, from_name: str, to_name: str) -> MoveResult:
        state = self.store.load()
        result = self._editor(state).move_file(state, path, from_name, to_name)
        self.store.save(state)
        return result
