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


import re

from merges.core.state.models import MergesState

_UNSAFE_CHARS_RE = re.compile(r"[^a-z0-9._-]+")
_DASH_RUN_RE = re.compile(r"-{2,}")
_CHUNK_INDEX_RE = re.compile(r"-chunk-(\d+)-")


def slugify_chunk_name(name: str) -> str:
    """Lowercase a chunk name into something safe inside a branch name."""
    slug = _UNSAFE_CHARS_RE.sub("-", name.strip().lower())
    slug = _DASH_RUN_RE.sub("-", slug)
    return slug.strip("-.")


def chunk_branch_name(source_branch: str, index: int, name: str) -> str:
    return f"{source_branch}-chunk-{index}-{slugify_chunk_name(name)}"


def chunk_index(branch: str) -> int | None:
    """Parse the creation index back out of a chunk branch name."""
    matches = _CHUNK_INDEX_RE.findall(branch)
    if not matches:
        return None
    return int(matches[-1])


def next_chunk_index(state: MergesState) -> int:
    """
    Index for the next chunk created in this plan.

    Indices are never reused, so removing chunk 1 with ``clean`` does not
    let a later split collide with the branch name of chunk 2.
    """
    indices = [chunk_index(chunk.branch) for chunk in state.chunks]
    known = [i for i in indices if i is not None]
    return max(known, default=0) + 1
