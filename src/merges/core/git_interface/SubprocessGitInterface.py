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


import os
import subprocess
from pathlib import Path

from loguru import logger

from merges.core.exceptions import git_not_found

from .interface import GitInterface

_MAX_LOGGED_OUTPUT = 2000


def _truncate(text: str) -> str:
    return text[:_MAX_LOGGED_OUTPUT] + (
        "...(truncated)" if len(text) > _MAX_LOGGED_OUTPUT else ""
    )


class SubprocessGitInterface(GitInterface):
    def __init__(self, repo_path: str | Path | None = None) -> None:
        # Ensure repo_path is a Path object for consistency
        if isinstance(repo_path, Path):
            self.repo_path = repo_path
        else:
            self.repo_path = Path(repo_path or ".")

    def run_git_text_out(
        self,
        args: list[str],
        input_text: str | None = None,
        env: dict | None = None,
        cwd: str | Path | None = None,
    ) -> str | None:
        result = self.run_git_text(args, input_text, env, cwd)
        return result.stdout if result else None

    def run_git_text(
        self,
        args: list[str],
        input_text: str | None = None,
        env: dict | None = None,
        cwd: str | Path | None = None,
    ) -> subprocess.CompletedProcess[str] | None:
        result = self.run_git(args, input_text, env, cwd)
        if result.returncode != 0:
            logger.warning(
                f"Git text command failed: git {' '.join(args)} code={result.returncode} stderr={result.stderr.strip()}"
            )
            return None
        return result

    def run_git(
        self,
        args: list[str],
        input_text: str | None = None,
        env: dict | None = None,
        cwd: str | Path | None = None,
    ) -> subprocess.CompletedProcess[str]:
        effective_cwd = str(cwd) if cwd is not None else str(self.repo_path)
        cmd = ["git"] + args
        logger.debug(f"Running git command: {' '.join(cmd)} cwd={effective_cwd}")

        effective_env = None
        if env is not None:
            effective_env = os.environ.copy()
            effective_env.update(env)

        try:
            result = subprocess.run(
                cmd,
                input=input_text,
                text=True,
                encoding="utf-8",
                errors="replace",
                capture_output=True,
                check=False,
                env=effective_env,
                cwd=effective_cwd,
            )
        except FileNotFoundError as e:
            raise git_not_found() from e

        if result.stdout:
            logger.debug(f"git stdout (text): {_truncate(result.stdout)}")
        if result.stderr:
            logger.debug(f"git stderr (text): {_truncate(result.stderr)}")
        logger.debug(f"git returncode: {result.returncode}")
        return result
