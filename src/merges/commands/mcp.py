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

from merges.context import GlobalContext
from merges.core.exceptions import handle_merges_exception
from merges.mcp.server import StdioServer
from merges.mcp.tools import build_registry


def main(ctx: typer.Context) -> None:
    """
    Serve the merges tools over MCP (JSON-RPC 2.0 on stdin/stdout).

    Logs go to stderr and the log file; stdout carries protocol messages only.

    Examples:
        merges mcp
    """
    global_context: GlobalContext = ctx.obj

    with handle_merges_exception():
        StdioServer(build_registry(global_context)).serve()
