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


import typer

from merges.commands.output import echo_json, finish
from merges.context import GlobalContext
from merges.core.exceptions import handle_merges_exception
from merges.core.logging.utils import time_block
from merges.pipelines.engine_init import open_store
from merges.pipelines.sync_pipeline import SyncPipeline


def main(
    ctx: typer.Context,
    no_fetch: bool = typer.Option(
        False, "--no-fetch", help="Rebase onto the base branch as it is locally."
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the report as JSON."),
) -> None:
    """
    Rebase every chunk branch onto the latest base branch.

    After resolving a conflict (`git add` the files) run it again to continue.

    Examples:
        merges sync
        merges --parallel sync
    """
    global_context: GlobalContext = ctx.obj

    with handle_merges_exception():
        with time_block("Sync Command E2E"):
            report = SyncPipeline(global_context, open_store(global_context)).run(
                fetch=not no_fetch
            )

    if as_json:
        echo_json(report.to_dict())
        if not report.ok:
            raise typer.Exit(1)
        return
    finish(report)
