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


"""
Newline-delimited JSON-RPC 2.0 on stdin/stdout with MCP framing.

stdout carries protocol messages only; everything else is logged.
"""

import json
import sys
from typing import Any, TextIO

from loguru import logger

from merges.constants import APP_NAME, MCP_PROTOCOL_VERSION
from merges.core.exceptions import mergesError
from merges.runtimeutil import get_version

from .registry import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    OPERATION_FAILED,
    PARSE_ERROR,
    ToolDispatchError,
    ToolRegistry,
)


def error_response(request_id: Any, code: int, message: str, data: Any = None) -> dict:
    error = {"code": code, "message": message}
    if data is not None:
        error["data"] = data
    return {"jsonrpc": "2.0", "id": request_id, "error": error}


def success_response(request_id: Any, result: dict) -> dict:
    return {"jsonrpc": "2.0", "id": request_id, "result": result}


class StdioServer:
    def __init__(
        self,
        registry: ToolRegistry,
        in_stream: TextIO | None = None,
        out_stream: TextIO | None = None,
    ):
        self.registry = registry
        self.in_stream = in_stream or sys.stdin
        self.out_stream = out_stream or sys.stdout

    def serve(self) -> None:
        logger.debug("Serving {count} tools on stdio", count=len(self.registry.names()))
        for raw_line in self.in_stream:
            line = raw_line.strip()
            if not line:
                continue
            response = self.handle_line(line)
            if response is None:
                continue
            self.out_stream.write(json.dumps(response) + "\n")
            self.out_stream.flush()
        logger.debug("stdin closed, stopping")

    def handle_line(self, line: str) -> dict | None:
        try:
            payload = json.loads(line)
        except json.JSONDecodeError as e:
            return error_response(None, PARSE_ERROR, "Parse error", str(e))
        return self.handle_payload(payload)

    def handle_payload(self, payload: Any) -> dict | None:
        """Answer one request; notifications (no ``id``) get no response."""
        if not isinstance(payload, dict):
            return error_response(None, INVALID_REQUEST, "Request must be an object")

        request_id = payload.get("id")
        method = payload.get("method")
        if payload.get("jsonrpc") != "2.0" or not isinstance(method, str) or not method:
            return error_response(request_id, INVALID_REQUEST, "Invalid request")

        if "id" not in payload:
            logger.debug("Notification {method}", method=method)
            return None

        params = payload.get("params") or {}
        if not isinstance(params, dict):
            return error_response(request_id, INVALID_PARAMS, "params must be an object")

        try:
            return success_response(request_id, self._dispatch(method, params))
        except ToolDispatchError as e:
            return error_response(request_id, e.code, e.message, e.data)
        except Exception as e:
            logger.exception(f"Unhandled error in {method}")
            return error_response(request_id, INTERNAL_ERROR, "Internal error", str(e))

    def _dispatch(self, method: str, params: dict) -> dict:
        if method == "initialize":
            return {
                "protocolVersion": MCP_PROTOCOL_VERSION,
                "capabilities": {"tools": {}},
                "serverInfo": {"name": APP_NAME, "version": get_version()},
            }
        if method == "ping":
            return {}
        if method == "tools/list":
            return {"tools": self.registry.describe()}
        if method == "tools/call":
            return self._call_tool(params)
        raise ToolDispatchError(METHOD_NOT_FOUND, f"Method not found: {method}")

    def _call_tool(self, params: dict) -> dict:
        name = params.get("name")
        arguments = params.get("arguments") or {}
        if not isinstance(name, str) or not name:
            raise ToolDispatchError(INVALID_PARAMS, "tools/call needs a tool name")
        if not isinstance(arguments, dict):
            raise ToolDispatchError(INVALID_PARAMS, "tools/call arguments must be an object")

        logger.info("tool {name}", name=name)
        try:
            result = self.registry.dispatch(name, arguments)
        except mergesError as e:
            logger.error(f"{name}: {e.message}")
            raise ToolDispatchError(
                OPERATION_FAILED, e.message, {"details": e.details}
            ) from e

        return {
            "content": [{"type": "text", "text": json.dumps(result, indent=2)}],
            "isError": result.get("ok") is False,
        }
