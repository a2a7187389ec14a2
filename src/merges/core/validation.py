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


from collections import Counter

from merges.core.exceptions import (
    ValidationError,
    chunk_not_found,
    not_git_repository,
)
from merges.core.git_commands.git_commands import GitCommands
from merges.core.state.models import Chunk, ChunkProposal, MergesState, Strategy
from merges.core.state.naming import slugify_chunk_name


def validate_git_repository(git_commands: GitCommands) -> None:
    """Fail fast when the target directory is not inside a git work tree."""
    if not git_commands.is_git_repository():
        raise not_git_repository(str(git_commands.repo_path))


def validate_chunk_name(name: str) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError("Chunk name cannot be empty")
    if not slugify_chunk_name(cleaned):
        raise ValidationError(
            f"Chunk name '{name}' has no characters usable in a branch name",
            "Use letters, digits, dots, dashes or underscores",
        )
    return cleaned


def validate_strategy(value: str | None) -> Strategy | None:
    if value is None:
        return None
    try:
        return Strategy(value.strip().lower())
    except ValueError as e:
        raise ValidationError(
            f"Unknown strategy: {value}",
            "Use 'stacked' or 'independent'",
        ) from e


def validate_file_list(files: list[str] | None) -> list[str]:
    cleaned = []
    for path in files or []:
        path = path.strip()
        if path and path not in cleaned:
            cleaned.append(path)
    if not cleaned:
        raise ValidationError("No files given")
    return cleaned


def find_chunk(state: MergesState, name: str) -> Chunk:
    chunk = state.find_chunk(name)
    if chunk is None:
        raise chunk_not_found(name, state.chunk_names())
    return chunk


def validate_plan(
    proposals: list[ChunkProposal],
    changed_files: list[str],
    state: MergesState,
) -> list[ChunkProposal]:
    """
    Check a proposed plan against the changed files and the existing chunks.

    Returns the proposals with names trimmed and files de-duplicated. Raises
    ``ValidationError`` on the first problem; nothing has been touched yet.
    """
    if not proposals:
        raise ValidationError("The plan is empty", "Provide at least one chunk")

    changed = set(changed_files)
    owners = state.assigned_files()
    existing_names = {name.lower() for name in state.chunk_names()}
    existing_slugs = {slugify_chunk_name(name) for name in state.chunk_names()}

    cleaned = []
    for proposal in proposals:
        name = validate_chunk_name(proposal.name)
        files = []
        for path in proposal.files:
            path = path.strip()
            if path and path not in files:
                files.append(path)
        if not files:
            raise ValidationError(f"Chunk '{name}' has no files")
        if name.lower() in existing_names or slugify_chunk_name(name) in existing_slugs:
            raise ValidationError(f"A chunk named '{name}' already exists")
        cleaned.append(ChunkProposal(name=name, files=files))

    slug_counts = Counter(slugify_chunk_name(p.name) for p in cleaned)
    duplicated = sorted(slug for slug, count in slug_counts.items() if count > 1)
    if duplicated:
        raise ValidationError(
            "Duplicate chunk names in plan",
            f"Names that collide: {', '.join(duplicated)}",
        )

    file_counts = Counter(path for p in cleaned for path in p.files)
    in_several = sorted(path for path, count in file_counts.items() if count > 1)
    if in_several:
        raise ValidationError(
            "Files assigned to more than one chunk",
            ", ".join(in_several),
        )

    already_assigned = sorted(path for path in file_counts if path in owners)
    if already_assigned:
        details = ", ".join(f"{p} (in '{owners[p]}')" for p in already_assigned)
        raise ValidationError(
            "Files already belong to an existing chunk",
            f"{details}. Use `merges move` to reassign them",
        )

    unknown = sorted(path for path in file_counts if path not in changed)
    if unknown:
        raise ValidationError(
            "Files are not changed on the source branch",
            ", ".join(unknown),
        )

    return cleaned
