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


from abc import ABC, abstractmethod
from pathlib import Path

from loguru import logger

from merges.core.git_commands.git_commands import GitCommands


class ConflictMemory(ABC):
    """
    Replays recorded conflict resolutions during a rebase.

    Injected into the stack manager so the behaviour can be switched off
    (or faked) without touching the rebase logic.
    """

    @abstractmethod
    def enable(self, git_commands: GitCommands) -> None:
        """Turn the facility on for the repository."""

    @abstractmethod
    def try_resolve(self, git_commands: GitCommands, cwd: Path) -> bool:
        """
        Called after a rebase stopped on conflicts.

        Returns True when the rebase could be finished with recorded
        resolutions only.
        """


class RerereConflictMemory(ConflictMemory):
    """git rerere with autoupdate: recorded resolutions are applied and staged."""

    def enable(self, git_commands: GitCommands) -> None:
        git_commands.set_config("rerere.enabled", "true")
        git_commands.set_config("rerere.autoupdate", "true")

    def try_resolve(self, git_commands: GitCommands, cwd: Path) -> bool:
        if git_commands.get_conflicted_paths(cwd):
            return False
        remaining = git_commands.finish_rebase(cwd)
        if not remaining:
            logger.info("[green]Reused recorded conflict resolutions[/green]")
        return not remaining


class NoConflictMemory(ConflictMemory):
    def enable(self, git_commands: GitCommands) -> None:
        pass

    def try_resolve(self, git_commands: GitCommands, cwd: Path) -> bool:
        return False
