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


from loguru import logger

from merges.context import GlobalContext
from merges.core.data.results import OperationReport
from merges.core.exceptions import ValidationError
from merges.core.state.store import StateStore
from merges.pipelines.engine_init import create_engine


class SyncPipeline:
    """Rebases every chunk branch onto the latest base branch."""

    def __init__(self, global_context: GlobalContext, store: StateStore):
        self.global_context = global_context
        self.store = store

    def run(self, fetch: bool = True) -> OperationReport:
        state = self.store.load()
        if not state.chunks:
            raise ValidationError("No chunks to sync", "Run `merges split` first")

        engine = create_engine(self.global_context, state)
        base_ref = engine.sync.resolve_base_ref(state, fetch=fetch)
        logger.info(
            "Syncing {count} chunk(s) onto {base} ({strategy})",
            count=len(state.chunks),
            base=base_ref,
            strategy=state.effective_strategy(),
        )
        return engine.sync.sync(state, base_ref)
