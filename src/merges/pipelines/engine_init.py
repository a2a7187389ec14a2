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


"""Wiring of the engine parts every pipeline needs."""

from dataclasses import dataclass

from merges.context import GlobalContext
from merges.core.exceptions import DetachedHeadError
from merges.core.git_commands.git_commands import GitCommands
from merges.core.remote.credentials import find_github_token, resolve_github_token
from merges.core.remote.github_client import GitHubClient
from merges.core.remote.interface import RemoteHost
from merges.core.stack.stack_manager import StackManager
from merges.core.state.models import MergesState
from merges.core.state.store import StateStore
from merges.core.sync.conflict_memory import (
    ConflictMemory,
    NoConflictMemory,
    RerereConflictMemory,
)
from merges.core.sync.sync_engine import SyncEngine
from merges.core.workspace.workspace import WorkspaceProvider


@dataclass
class Engine:
    git: GitCommands
    workspaces: WorkspaceProvider
    stack: StackManager
    sync: SyncEngine


def open_store(global_context: GlobalContext) -> StateStore:
    return StateStore(global_context.git_commands.get_repo_root())


def create_conflict_memory(global_context: GlobalContext) -> ConflictMemory:
    if global_context.config.conflict_memory:
        return RerereConflictMemory()
    return NoConflictMemory()


def home_branch(git_commands: GitCommands, state: MergesState) -> str:
    """The branch the shared working directory returns to after an operation."""
    try:
        return git_commands.get_current_branch()
    except DetachedHeadError:
        return state.source_branch


def create_engine(
    global_context: GlobalContext,
    state: MergesState,
    home: str | None = None,
    conflict_memory: ConflictMemory | None = None,
) -> Engine:
    git = global_context.git_commands
    config = global_context.config
    workspaces = WorkspaceProvider(
        git,
        git.get_repo_root(),
        home or home_branch(git, state),
        use_worktrees=state.use_worktrees,
    )
    stack = StackManager(
        git, workspaces, conflict_memory or create_conflict_memory(global_context)
    )
    sync = SyncEngine(
        git,
        workspaces,
        stack,
        remote_name=config.remote_name,
        parallel=config.parallel,
        max_workers=config.max_workers,
    )
    return Engine(git, workspaces, stack, sync)


def create_remote_host(
    global_context: GlobalContext, state: MergesState, required: bool = True
) -> RemoteHost | None:
    """GitHub client for the plan's repository; None when optional and no token is found."""
    config = global_context.config
    if required:
        token = resolve_github_token(config.github_token)
    else:
        token = find_github_token(config.github_token)
        if token is None:
            return None
    return GitHubClient(
        state.repo_owner,
        state.repo_name,
        token,
        api_url=config.github_api_url,
        timeout=config.request_timeout,
    )
