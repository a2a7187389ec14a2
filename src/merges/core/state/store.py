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
import tempfile
from pathlib import Path

from loguru import logger
from pydantic import ValidationError as PydanticValidationError

from merges.constants import STATE_FILE
from merges.core.exceptions import FileSystemError, StateError, state_missing
from merges.core.state.models import MergesState


class StateStore:
    """Reads and writes the chunk plan kept at the repository root."""

    def __init__(self, repo_root: Path):
        self.repo_root = Path(repo_root)

    @property
    def path(self) -> Path:
        return self.repo_root / STATE_FILE

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> MergesState:
        try:
            content = self.path.read_text(encoding="utf-8")
        except FileNotFoundError as e:
            raise state_missing(STATE_FILE) from e
        except OSError as e:
            raise StateError(f"Could not read {STATE_FILE}", str(e)) from e

        try:
            return MergesState.model_validate_json(content)
        except PydanticValidationError as e:
            raise StateError(f"Failed to parse {STATE_FILE} (invalid JSON)", str(e)) from e

    def save(self, state: MergesState) -> None:
        content = state.model_dump_json(indent=2, exclude_none=True)

        # write next to the target then rename, so a crash never leaves half a plan
        fd, tmp_name = tempfile.mkstemp(
            prefix=".merges-", suffix=".json", dir=self.repo_root
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content + "\n")
            os.replace(tmp_name, self.path)
        except OSError as e:
            Path(tmp_name).unlink(missing_ok=True)
            raise FileSystemError(f"Failed to write {self.path}", str(e)) from e

        logger.debug(
            "Saved plan with {count} chunks to {path}",
            count=len(state.chunks),
            path=self.path,
        )
