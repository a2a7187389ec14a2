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


import inquirer
import typer
from loguru import logger

from merges.commands.output import echo_json
from merges.context import CleanContext, GlobalContext
from merges.core.exceptions import handle_merges_exception
from merges.core.logging.logging import log_operation
from merges.core.logging.utils import time_block
from merges.pipelines.clean_pipeline import CleanPipeline
from merges.pipelines.engine_init import open_store


def main(
    ctx: typer.Context,
    merged: bool = typer.Option(
        False, "--merged", help="Only remove chunks whose pull request was merged."
    ),
    remote: bool = typer.Option(
        False, "--remote", help="Also delete the branches on GitHub."
    ),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation."),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Show what would be removed and exit."
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON."),
) -> None:
    """
    Delete chunk branches and drop them from the plan.

    Examples:
        # After the first PRs of a stack landed
        merges clean --merged

        # Throw the whole split away, including remote branches
        merges clean --remote -y
    """
    global_context: GlobalContext = ctx.obj

    with handle_merges_exception():
        clean_context = CleanContext(
            merged_only=merged, delete_remote=remote, dry_run=dry_run
        )
        pipeline = CleanPipeline(global_context, clean_context, open_store(global_context))

        if not (dry_run or yes or global_context.auto_accept):
            selected = pipeline.preview()
            if not selected:
                logger.info("Nothing to clean")
                return
            for chunk in selected:
                logger.info(f"  {chunk.name} ({chunk.branch})")
            confirmed = inquirer.confirm(
                f"Delete {len(selected)} chunk branch(es)?", default=False
            )
            if not confirmed:
                logger.info("[yellow]Clean cancelled[/yellow]")
                raise typer.Exit(1)

        with time_block("Clean Command E2E"):
            report = pipeline.run()

    log_operation("clean", report.ok, removed=report.removed, failed=list(report.failed))
    if as_json:
        echo_json(report.to_dict())
    elif report.dry_run:
        logger.info(f"Would remove: {', '.join(report.selected) or '(nothing)'}")
    else:
        logger.success(f"Removed {len(report.removed)} chunk(s)")
        for name, message in report.failed.items():
            logger.error(f"  {name}: {message}")
    if not report.ok:
        raise typer.Exit(1)
