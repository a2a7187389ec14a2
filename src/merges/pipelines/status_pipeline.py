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
from merges.core.remote.interface import RemoteHost
from merges.core.remote.status_aggregator import ChunkStatus, StatusAggregator
from merges.core.state.models import MergesState
from merges.core.state.store import StateStore
from merges.pipelines.engine_init import create_engine, create_remote_host


class StatusPipeline:
    """
    Collects per-chunk sync, PR, CI and review state.

    The GitHub facets are only filled in when a token can be found; without
    one the local sync state is still reported.
    """

    def __init__(
        self,
        global_context: GlobalContext,
        store: StateStore,
        remote: RemoteHost | None = None,
    ):
        self.global_context = global_context
        self.store = store
        self.remote = remote

    def run(self, fetch: bool = False) -> tuple[MergesState, list[ChunkStatus]]:
        state = self.store.load()
        engine = create_engine(self.global_context, state)
        base_ref = engine.sync.resolve_base_ref(state, fetch=fetch)

        remote = self.remote or create_remote_host(
            self.global_context, state, required=False
        )
        try:
            statuses = StatusAggregator(
                self.global_context.git_commands, remote
            ).collect(state, base_ref)
        finally:
            if self.remote is None and remote is not None:
                remote.close()
        return state, statuses
