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
from merges.core.exceptions import ValidationError, handle_merges_exception
from merges.core.logging.utils import time_block
from merges.core.state.models import Strategy
from merges.pipelines.engine_init import open_store
from merges.pipelines.push_pipeline import PushPipeline


def main(
    ctx: typer.Context,
    stacked: bool = typer.Option(
        False, "--stacked", help="Each PR targets the previous chunk's branch."
    ),
    independent: bool = typer.Option(
        False, "--independent", help="Every PR targets the base branch."
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the report as JSON."),
) -> None:
    """
    Sync, push every chunk branch and create or update its pull request.

    The strategy is remembered in the plan; the first push defaults to stacked.

    Examples:
        merges push
        merges push --independent
    """
    global_context: GlobalContext = ctx.obj

    with handle_merges_exception():
        if stacked and independent:
            raise ValidationError("Choose either --stacked or --independent")
        strategy = None
        if stacked:
            strategy = Strategy.STACKED
        elif independent:
            strategy = Strategy.INDEPENDENT

        with time_block("Push Command E2E"):
            report = PushPipeline(global_context, open_store(global_context)).run(
                strategy
            )

    if as_json:
        echo_json(report.to_dict())
        if not report.ok:
            raise typer.Exit(1)
        return
    finish(report)
