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

import io
import json

from merges.mcp.registry import OPERATION_FAILED
from merges.mcp.server import StdioServer
from merges.mcp.tools import build_registry

TOOLS = [
    "merges_init",
    "merges_split",
    "merges_push",
    "merges_sync",
    "merges_status",
    "merges_add",
    "merges_move",
    "merges_clean",
    "merges_doctor",
]


class Session:
    def __init__(self, registry):
        self.server = StdioServer(registry, io.StringIO(), io.StringIO())
        self._next_id = 0

    def request(self, method, params=None):
        self._next_id += 1
        payload = {"jsonrpc": "2.0", "id": self._next_id, "method": method}
        if params is not None:
            payload["params"] = params
        return self.server.handle_line(json.dumps(payload))

    def call(self, name, **arguments):
        response = self.request("tools/call", {"name": name, "arguments": arguments})
        if "error" in response:
            return response
        result = response["result"]
        return {"isError": result["isError"], **json.loads(result["content"][0]["text"])}


def test_tools_are_listed(global_context):
    session = Session(build_registry(global_context))

    tools = session.request("tools/list")["result"]["tools"]

    assert [t["name"] for t in tools] == TOOLS
    move = next(t for t in tools if t["name"] == "merges_move")
    assert move["inputSchema"]["required"] == ["file", "from_chunk", "to_chunk"]


def test_two_phase_split_then_edit(global_context, initial_state, fake_remote):
    session = Session(build_registry(global_context, fake_remote))

    discovery = session.call("merges_split")
    assert discovery["isError"] is False
    assert "db/a.sql" in discovery["unassigned_files"]
    assert discovery["suggested_plan"][0]["name"] == "db"

    plan = [
        {"name": "db", "files": ["db/a.sql", "db/b.sql"]},
        {"name": "app", "files": ["src/app.py"]},
    ]
    created = session.call("merges_split", plan=plan)
    assert created["ok"] is True
    assert [c["status"] for c in created["chunks"]] == ["created", "created"]

    added = session.call("merges_add", chunk="db", files=["db/old.sql"])
    assert added["committed"] is True

    moved = session.call("merges_move", file="db/b.sql", from_chunk="db", to_chunk="app")
    assert moved["to_chunk"] == "app"

    status = session.call("merges_status")
    assert status["strategy"] == "stacked"
    assert [c["files"] for c in status["chunks"]] == [2, 2]

    doctor = session.call("merges_doctor")
    assert doctor["healthy"] is True


def test_tool_failures_are_reported_as_errors(global_context, initial_state):
    session = Session(build_registry(global_context))

    response = session.call("merges_add", chunk="missing", files=["db/a.sql"])

    assert response["error"]["code"] == OPERATION_FAILED
    assert response["error"]["message"] == "Chunk 'missing' not found"
    assert "Available chunks" in response["error"]["data"]["details"]


def test_bad_plan_is_rejected_before_any_branch(global_context, initial_state, feature_repo, run_git):
    session = Session(build_registry(global_context))

    response = session.call("merges_split", plan=[{"name": "db"}])

    assert response["error"]["code"] == OPERATION_FAILED
    assert run_git(feature_repo, "branch", "--list", "feature/big-chunk-*") == ""


def test_clean_dry_run_through_tools(global_context, initial_state):
    session = Session(build_registry(global_context))
    session.call("merges_split", plan=[{"name": "db", "files": ["db/a.sql"]}])

    report = session.call("merges_clean", dry_run=True)

    assert report["selected"] == ["db"]
    assert report["removed"] == []
