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


"""Named tools with JSON schemas, dispatched in registration order."""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603
OPERATION_FAILED = -32000

ToolHandler = Callable[[dict[str, Any]], dict[str, Any]]

_JSON_TYPES = {
    "string": str,
    "boolean": bool,
    "integer": int,
    "array": list,
    "object": dict,
}


class ToolDispatchError(Exception):
    """A request that cannot be answered with a tool result."""

    def __init__(self, code: int, message: str, data: Any = None):
        super().__init__(message)
        self.code = code
        self.message = message
        self.data = data


@dataclass(frozen=True)
class Tool:
    name: str
    description: str
    handler: ToolHandler
    properties: dict[str, dict] = field(default_factory=dict)
    required: tuple[str, ...] = ()

    @property
    def input_schema(self) -> dict:
        schema = {
            "type": "object",
            "properties": self.properties,
            "additionalProperties": False,
        }
        if self.required:
            schema["required"] = list(self.required)
        return schema

    def describe(self) -> dict:
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }

    def check_arguments(self, arguments: dict[str, Any]) -> None:
        missing = [name for name in self.required if name not in arguments]
        if missing:
            raise ToolDispatchError(
                INVALID_PARAMS, f"{self.name}: missing argument(s) {', '.join(missing)}"
            )
        for name, value in arguments.items():
            spec = self.properties.get(name)
            if spec is None:
                raise ToolDispatchError(
                    INVALID_PARAMS, f"{self.name}: unknown argument '{name}'"
                )
            expected = _JSON_TYPES.get(spec.get("type", ""))
            # bool is an int subclass
            wrong_type = expected is not None and (
                not isinstance(value, expected)
                or (expected is int and isinstance(value, bool))
            )
            if value is not None and wrong_type:
                raise ToolDispatchError(
                    INVALID_PARAMS,
                    f"{self.name}: '{name}' must be of type {spec['type']}",
                )
            if "enum" in spec and value is not None and value not in spec["enum"]:
                raise ToolDispatchError(
                    INVALID_PARAMS,
                    f"{self.name}: '{name}' must be one of {', '.join(spec['enum'])}",
                )


@dataclass
class ToolRegistry:
    _tools: dict[str, Tool] = field(default_factory=dict)

    def register(self, tool: Tool) -> None:
        self._tools[tool.name] = tool

    def get(self, name: str) -> Tool | None:
        return self._tools.get(name)

    def names(self) -> tuple[str, ...]:
        return tuple(self._tools)

    def describe(self) -> list[dict]:
        return [tool.describe() for tool in self._tools.values()]

    def dispatch(self, name: str, arguments: dict[str, Any]) -> dict[str, Any]:
        tool = self.get(name)
        if tool is None:
            raise ToolDispatchError(INVALID_PARAMS, f"Unknown tool: {name}")
        tool.check_arguments(arguments)
        return tool.handler(arguments)
