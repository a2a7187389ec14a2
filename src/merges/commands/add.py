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
from merges.core.logging.utils import time_block
from merges.pipelines.edit_pipeline import ChunkEditPipeline
from merges.pipelines.engine_init import open_store


def main(
    ctx: typer.Context,
    chunk: str = typer.Argument(..., help="Name of the chunk to extend."),
    files: list[str] = typer.Argument(..., help="Changed files to add to the chunk."),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON."),
) -> None:
    """
    Add changed files to an existing chunk.

    Files already in the chunk with identical content are left alone, so
    running the same add twice changes nothing.

    Examples:
        merges add models src/models/order.py src/models/item.py
    """
    global_context: GlobalContext = ctx.obj

    with handle_merges_exception():
        with time_block("Add Command E2E"):
            result = ChunkEditPipeline(global_context, open_store(global_context)).add(
                chunk, files
            )

    if as_json:
        echo_json(result.to_dict())
        return
    if result.committed:
        logger.success(f"Updated '{result.chunk}' with {len(result.updated)} file(s)")
    else:
        logger.info(f"'{result.chunk}' already up to date")
    if result.restacked:
        logger.info(f"Carried forward: {', '.join(result.restacked)}")
