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

from loguru import logger

from merges.core.exceptions import missing_github_token


def _token_from_gh() -> str | None:
    try:
        result = subprocess.run(
            ["gh", "auth", "token"],
            capture_output=True,
            text=True,
            check=False,
            timeout=10,
        )
    except (FileNotFoundError, subprocess.TimeoutExpired) as e:
        logger.debug(f"gh auth token unavailable: {e}")
        return None
    token = result.stdout.strip()
    return token if result.returncode == 0 and token else None


def find_github_token(configured: str | None = None) -> str | None:
    """Configured token first, then the gh CLI, then GITHUB_TOKEN."""
    if configured:
        return configured
    token = _token_from_gh()
    if token:
        logger.debug("Using GitHub token from gh auth")
        return token
    token = os.environ.get("GITHUB_TOKEN", "").strip()
    if token:
        logger.debug("Using GitHub token from GITHUB_TOKEN")
        return token
    return None


def resolve_github_token(configured: str | None = None) -> str:
    token = find_github_token(configured)
    if token is None:
        raise missing_github_token()
    return token
