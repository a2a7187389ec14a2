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
    file: str = typer.Argument(..., help="File to move."),
    from_chunk: str = typer.Option(..., "--from", help="Chunk that owns the file now."),
    to_chunk: str = typer.Option(..., "--to", help="Chunk that should own the file."),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON."),
) -> None:
    """
    Move a file from one chunk to another.

    Examples:
        merges move src/api/schema.py --from api --to models
    """
    global_context: GlobalContext = ctx.obj

    with handle_merges_exception():
        with time_block("Move Command E2E"):
            result = ChunkEditPipeline(global_context, open_store(global_context)).move(
                file, from_chunk, to_chunk
            )

    if as_json:
        echo_json(result.to_dict())
        return
    logger.success(f"Moved {result.file}: {result.from_chunk} → {result.to_chunk}")
    if result.restacked:
        logger.info(f"Carried forward: {', '.join(result.restacked)}")
