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


"""
Data model of the persisted chunk plan.

``MergesState`` is the root entity: one source branch, one base branch, the
remote repository identity, the strategy, and the ordered chunks. Under the
``stacked`` strategy the order of ``chunks`` defines the PR base chain.
"""

from enum import Enum

from pydantic import BaseModel, Field


class Strategy(str, Enum):
    STACKED = "stacked"
    INDEPENDENT = "independent"

    def __str__(self) -> str:
        return self.value


class ChunkProposal(BaseModel):
    """A named group of files that has not been materialized yet."""

    name: str
    files: list[str] = Field(default_factory=list)


class Chunk(BaseModel):
    name: str
    branch: str
    files: list[str] = Field(default_factory=list)
    pr_number: int | None = None
    pr_url: str | None = None


class MergesState(BaseModel):
    base_branch: str
    source_branch: str
    repo_owner: str
    repo_name: str
    strategy: Strategy | None = None
    use_worktrees: bool = False
    commit_prefix: str | None = None
    chunks: list[Chunk] = Field(default_factory=list)

    def chunk_names(self) -> list[str]:
        return [chunk.name for chunk in self.chunks]

    def find_chunk(self, name: str) -> Chunk | None:
        for chunk in self.chunks:
            if chunk.name == name:
                return chunk
        return None

    def find_chunk_by_branch(self, branch: str) -> Chunk | None:
        for chunk in self.chunks:
            if chunk.branch == branch:
                return chunk
        return None

    def index_of(self, name: str) -> int:
        for i, chunk in enumerate(self.chunks):
            if chunk.name == name:
                return i
        raise KeyError(name)

    def assigned_files(self) -> dict[str, str]:
        """Map every assigned file to the name of the chunk that owns it."""
        owners = {}
        for chunk in self.chunks:
            for path in chunk.files:
                owners.setdefault(path, chunk.name)
        return owners

    def effective_strategy(self) -> Strategy:
        return self.strategy or Strategy.STACKED
