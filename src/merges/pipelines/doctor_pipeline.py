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
from merges.core.doctor.doctor import Doctor, DoctorReport
from merges.core.state.store import StateStore
from merges.pipelines.engine_init import create_engine


class DoctorPipeline:
    def __init__(self, global_context: GlobalContext, store: StateStore):
        self.global_context = global_context
        self.store = store

    def run(self, repair: bool = False) -> DoctorReport:
        state = self.store.load()
        engine = create_engine(self.global_context, state)
        return Doctor(engine.git, engine.workspaces).check(state, repair=repair)
