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


from dataclasses import dataclass
from pathlib import Path

from pydantic import BaseModel, Field

from merges.constants import DEFAULT_GITHUB_API_URL, DEFAULT_REMOTE
from merges.core.git_commands.git_commands import GitCommands
from merges.core.git_interface.interface import GitInterface
from merges.core.git_interface.SubprocessGitInterface import (
    SubprocessGitInterface,
)


class GlobalConfig(BaseModel):
    verbose: bool = Field(default=False, description="Enable verbose logging output")
    silent: bool = Field(
        default=False,
        description="Do not output any text to the console, except for prompts",
    )
    auto_accept: bool = Field(
        default=False,
        description="Automatically accept all prompts without user confirmation",
    )
    parallel: bool = Field(
        default=False,
        description="Rebase and push chunks concurrently (requires worktree mode)",
    )
    max_workers: int = Field(
        default=4, ge=1, le=64, description="Thread count for parallel operations"
    )
    remote_name: str = Field(
        default=DEFAULT_REMOTE, description="Git remote that hosts the pull requests"
    )
    github_token: str | None = Field(
        default=None,
        description="GitHub token (falls back to `gh auth token`, then GITHUB_TOKEN)",
    )
    github_api_url: str = Field(
        default=DEFAULT_GITHUB_API_URL, description="GitHub REST API base URL"
    )
    request_timeout: float = Field(
        default=30.0, gt=0, description="Timeout in seconds for GitHub API requests"
    )
    root_group_name: str = Field(
        default="root", description="Chunk name used for files at the repository root"
    )
    root_files_separate: bool = Field(
        default=True,
        description="Always put repository-root files in their own chunk; when false they join the only other chunk if there is exactly one",
    )
    conflict_memory: bool = Field(
        default=True,
        description="Enable git rerere so repeated conflicts resolve themselves",
    )


@dataclass(frozen=True)
class GlobalContext:
    repo_path: Path
    git_interface: GitInterface
    git_commands: GitCommands
    config: GlobalConfig

    @classmethod
    def from_global_config(cls, config: GlobalConfig, repo_path: Path):
        git_interface = SubprocessGitInterface(repo_path)
        git_commands = GitCommands(git_interface)

        return GlobalContext(repo_path, git_interface, git_commands, config)

    @property
    def auto_accept(self) -> bool:
        return self.config.auto_accept


@dataclass(frozen=True)
class InitContext:
    base_branch: str
    use_worktrees: bool = False
    commit_prefix: str | None = None
    force: bool = False


@dataclass(frozen=True)
class CleanContext:
    merged_only: bool = False
    delete_remote: bool = False
    dry_run: bool = False
