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


import json
from pathlib import Path

import inquirer
import typer
from loguru import logger

from merges.commands.output import echo_json
from merges.context import GlobalContext
from merges.core.exceptions import ValidationError, handle_merges_exception
from merges.core.logging.logging import log_operation
from merges.core.logging.utils import time_block
from merges.core.state.models import ChunkProposal
from merges.pipelines.engine_init import open_store
from merges.pipelines.split_pipeline import (
    SplitDiscovery,
    SplitPipeline,
    plan_from_data,
)


def parse_plan(raw: str) -> list[ChunkProposal]:
    """Parse a JSON plan given inline or as ``@path/to/plan.json``."""
    if raw.startswith("@"):
        path = Path(raw[1:])
        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as e:
            raise ValidationError(f"Cannot read plan file {path}", str(e)) from e
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValidationError("Plan is not valid JSON", str(e)) from e
    return plan_from_data(data)


def log_plan(proposals: list[ChunkProposal]) -> None:
    for i, proposal in enumerate(proposals, start=1):
        logger.info(f"[bold]{i}. {proposal.name}[/bold] ({len(proposal.files)} files)")
        for path in proposal.files:
            logger.info(f"     {path}")


def prompt_plan(discovery: SplitDiscovery) -> list[ChunkProposal]:
    """Offer the suggested plan, or build one chunk at a time from the unassigned files."""
    if not discovery.unassigned_files:
        raise ValidationError(
            "Every changed file already belongs to a chunk", "Nothing left to split"
        )

    logger.info("Suggested plan:")
    log_plan(discovery.suggested)
    if inquirer.confirm("Use the suggested plan?", default=True):
        return discovery.suggested

    proposals = []
    remaining = list(discovery.unassigned_files)
    while remaining:
        name = inquirer.text(
            message=f"Name of chunk {len(proposals) + 1} (empty to finish)"
        ).strip()
        if not name:
            break
        files = inquirer.checkbox(f"Files for '{name}'", choices=remaining)
        if not files:
            logger.info("[yellow]No files selected, chunk skipped[/yellow]")
            continue
        proposals.append(ChunkProposal(name=name, files=files))
        remaining = [f for f in remaining if f not in files]

    if remaining and proposals:
        logger.info(f"{len(remaining)} file(s) left unassigned, add them later with `merges split`")
    return proposals


def main(
    ctx: typer.Context,
    auto: bool = typer.Option(
        False, "--auto", help="Apply the directory-based plan without asking."
    ),
    plan: str | None = typer.Option(
        None,
        "--plan",
        help='Explicit plan as JSON, inline or @file: [{"name": "...", "files": [...]}]',
    ),
    show: bool = typer.Option(
        False,
        "--show",
        help="Print changed files and the suggested plan as JSON and exit.",
    ),
) -> None:
    """
    Split the source branch into chunk branches.

    Without options the suggested plan (one chunk per top-level directory) is
    shown; decline it to build the plan chunk by chunk.

    Examples:
        # Review and apply the suggested plan
        merges split

        # Apply an explicit plan
        merges split --plan '[{"name": "models", "files": ["src/models/user.py"]}]'
    """
    global_context: GlobalContext = ctx.obj

    with handle_merges_exception():
        pipeline = SplitPipeline(global_context, open_store(global_context))

        if show:
            echo_json(pipeline.discover().to_dict())
            return

        if plan is not None:
            proposals = parse_plan(plan)
        elif auto or global_context.auto_accept:
            proposals = pipeline.auto_plan()
            log_plan(proposals)
        else:
            proposals = prompt_plan(pipeline.discover())
            if not proposals:
                logger.info("[yellow]Split cancelled[/yellow]")
                raise typer.Exit(1)

        with time_block("Split Command E2E"):
            chunks = pipeline.apply(proposals)

        log_operation("split", True, chunks=[c.name for c in chunks])
        logger.success(f"Created {len(chunks)} chunk branch(es)")
        logger.info("Next: [bold]merges push[/bold]")
