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
from loguru import logger

from merges.commands.output import echo_json
from merges.context import GlobalContext
from merges.core.exceptions import handle_merges_exception
from merges.pipelines.doctor_pipeline import DoctorPipeline
from merges.pipelines.engine_init import open_store


def main(
    ctx: typer.Context,
    repair: bool = typer.Option(
        False, "--repair", help="Fix what can be fixed automatically."
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the report as JSON."),
) -> None:
    """
    Check that the plan, the branches and the worktrees still agree.

    Examples:
        merges doctor
        merges doctor --repair
    """
    global_context: GlobalContext = ctx.obj

    with handle_merges_exception():
        report = DoctorPipeline(global_context, open_store(global_context)).run(
            repair=repair
        )

    if as_json:
        echo_json(report.to_dict())
    elif not report.issues:
        logger.success("No problems found")
    else:
        for issue in report.issues:
            mark = "[green]fixed[/green]" if issue.fixed else "[red]issue[/red]"
            logger.info(f"{mark} {issue.kind}: {issue.message}")
    if not report.healthy:
        raise typer.Exit(1)
