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

from merges.constants import DEFAULT_BASE_BRANCH, STATE_FILE
from merges.context import GlobalContext, InitContext
from merges.core.exceptions import handle_merges_exception
from merges.core.logging.logging import log_operation
from merges.core.logging.utils import time_block
from merges.pipelines.engine_init import open_store
from merges.pipelines.init_pipeline import InitPipeline


def main(
    ctx: typer.Context,
    base: str = typer.Option(
        DEFAULT_BASE_BRANCH, "--base", "-b", help="Branch the chunks are merged into."
    ),
    worktrees: bool = typer.Option(
        False,
        "--worktrees",
        help="Give every chunk branch its own worktree (needed for --parallel).",
    ),
    commit_prefix: str | None = typer.Option(
        None,
        "--commit-prefix",
        help="Text prepended to chunk commit messages and PR titles, e.g. a ticket id.",
    ),
    force: bool = typer.Option(
        False, "--force", "-f", help="Overwrite an existing plan without asking."
    ),
) -> None:
    """
    Start a chunk plan for the current branch.

    Examples:
        # Split the current branch against main
        merges init

        # Against develop, one worktree per chunk
        merges init --base develop --worktrees
    """
    global_context: GlobalContext = ctx.obj

    with handle_merges_exception():
        store = open_store(global_context)
        if store.exists() and not (force or global_context.auto_accept):
            force = inquirer.confirm(
                f"{STATE_FILE} already exists. Start a new plan?", default=False
            )
            if not force:
                logger.info("[yellow]Init cancelled, existing plan kept[/yellow]")
                raise typer.Exit(1)

        init_context = InitContext(
            base_branch=base,
            use_worktrees=worktrees,
            commit_prefix=commit_prefix,
            force=force or global_context.auto_accept,
        )
        with time_block("Init Command E2E"):
            state = InitPipeline(global_context, init_context, store).run()

        log_operation(
            "init",
            True,
            source=state.source_branch,
            base=state.base_branch,
            repo=f"{state.repo_owner}/{state.repo_name}",
        )
        logger.success(
            f"Initialised plan for {state.source_branch} → {state.base_branch} "
            f"({state.repo_owner}/{state.repo_name})"
        )
        logger.info("Next: [bold]merges split[/bold]")
