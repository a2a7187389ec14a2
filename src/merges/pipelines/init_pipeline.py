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

from merges.constants import STATE_FILE
from merges.context import GlobalContext, InitContext
from merges.core.exceptions import ValidationError
from merges.core.remote.github_client import parse_github_remote
from merges.core.state.models import MergesState
from merges.core.state.store import StateStore
from merges.core.sync.conflict_memory import ConflictMemory
from merges.pipelines.engine_init import create_conflict_memory


class InitPipeline:
    """Creates the plan file for the current branch."""

    def __init__(
        self,
        global_context: GlobalContext,
        init_context: InitContext,
        store: StateStore,
        conflict_memory: ConflictMemory | None = None,
    ):
        self.global_context = global_context
        self.init_context = init_context
        self.store = store
        self.conflict_memory = conflict_memory or create_conflict_memory(
            global_context
        )

    def run(self) -> MergesState:
        git = self.global_context.git_commands
        config = self.global_context.config
        base = self.init_context.base_branch.strip()

        if self.store.exists() and not self.init_context.force:
            raise ValidationError(
                f"{STATE_FILE} already exists",
                "Pass --force to overwrite the existing plan",
            )

        source = git.get_current_branch()
        if source == base:
            raise ValidationError(
                f"You are on the base branch '{base}'",
                "Check out the feature branch you want to split first",
            )

        if not git.branch_exists(base):
            raise ValidationError(
                f"Base branch '{base}' does not exist locally",
                f"Create it with `git branch {base} {config.remote_name}/{base}`",
            )

        owner, repo = parse_github_remote(git.get_remote_url(config.remote_name))

        state = MergesState(
            base_branch=base,
            source_branch=source,
            repo_owner=owner,
            repo_name=repo,
            use_worktrees=self.init_context.use_worktrees,
            commit_prefix=self.init_context.commit_prefix or None,
        )
        self.store.save(state)

        if git.ensure_excluded(STATE_FILE):
            logger.debug("{file} added to info/exclude", file=STATE_FILE)
        self.conflict_memory.enable(git)

        logger.debug(
            "Initialised plan",
            owner=owner,
            repo=repo,
            source=source,
            base=base,
            worktrees=state.use_worktrees,
        )
        return state
