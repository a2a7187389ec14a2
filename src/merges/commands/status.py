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
from rich.console import Console
from rich.table import Table

from merges.commands.output import echo_json
from merges.context import GlobalContext
from merges.core.exceptions import handle_merges_exception
from merges.core.logging.utils import time_block
from merges.core.remote.status_aggregator import ChunkStatus
from merges.core.state.models import MergesState
from merges.pipelines.engine_init import open_store
from merges.pipelines.status_pipeline import StatusPipeline

_STATE_STYLES = {
    "open": "green",
    "merged": "magenta",
    "closed": "red",
    "success": "green",
    "failure": "red",
    "pending": "yellow",
    "approved": "green",
    "changes_requested": "red",
}


def _styled(value: str | None) -> str:
    if not value:
        return "-"
    style = _STATE_STYLES.get(value)
    return f"[{style}]{value}[/{style}]" if style else value


def build_table(state: MergesState, statuses: list[ChunkStatus]) -> Table:
    table = Table(
        title=f"{state.source_branch} → {state.base_branch} ({state.effective_strategy()})"
    )
    table.add_column("#", justify="right")
    table.add_column("Chunk")
    table.add_column("Branch", style="cyan")
    table.add_column("Files", justify="right")
    table.add_column("Sync")
    table.add_column("PR")
    table.add_column("CI")
    table.add_column("Review")

    for status in statuses:
        pr = f"#{status.pr_number} {_styled(status.pr_state)}" if status.pr_number else "-"
        table.add_row(
            str(status.index),
            status.name,
            status.branch,
            str(status.files),
            status.sync,
            pr,
            _styled(status.ci),
            _styled(status.review),
        )
    return table


def main(
    ctx: typer.Context,
    fetch: bool = typer.Option(
        False, "--fetch", help="Fetch the remote before comparing with the base branch."
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the status as JSON."),
) -> None:
    """
    Show every chunk with its sync state, PR, CI and review status.

    Examples:
        merges status
        merges status --fetch --json
    """
    global_context: GlobalContext = ctx.obj

    with handle_merges_exception():
        with time_block("Status Command E2E"):
            state, statuses = StatusPipeline(
                global_context, open_store(global_context)
            ).run(fetch=fetch)

    if as_json:
        echo_json([s.to_dict() for s in statuses])
        return

    if not statuses:
        typer.echo("No chunks yet. Run `merges split` to create them.")
        return
    Console().print(build_table(state, statuses))
