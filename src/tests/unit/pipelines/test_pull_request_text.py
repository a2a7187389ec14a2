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

import pytest

from merges.core.exceptions import ValidationError
from merges.core.state.models import Chunk, MergesState, Strategy
from merges.pipelines.push_pipeline import pull_request_body, pull_request_title
from merges.pipelines.split_pipeline import SplitDiscovery, plan_from_data


@pytest.fixture
def state():
    return MergesState(
        base_branch="main",
        source_branch="feature/big",
        repo_owner="acme",
        repo_name="widgets",
        chunks=[
            Chunk(name="db", branch="feature/big-chunk-1-db", files=["db/a.sql"]),
            Chunk(name="src", branch="feature/big-chunk-2-src", files=["src/app.py"]),
        ],
    )


def test_title_uses_commit_prefix(state):
    assert pull_request_title(state, state.chunks[0]) == "db"
    state.commit_prefix = "[JIRA-1]"
    assert pull_request_title(state, state.chunks[0]) == "[JIRA-1] db"


def test_stacked_body_names_the_chunk_below(state):
    body = pull_request_body(state, 1)

    assert body.startswith("Part 2 of 2 split from `feature/big`.")
    assert "Stacked on `feature/big-chunk-1-db` (db)." in body
    assert body.endswith("- `src/app.py`")


def test_independent_body_has_no_stack_line(state):
    state.strategy = Strategy.INDEPENDENT

    assert "Stacked on" not in pull_request_body(state, 1)
    assert "Stacked on" not in pull_request_body(state, 0)


def test_plan_from_data():
    plan = plan_from_data([{"name": "db", "files": ["db/a.sql"]}])

    assert plan[0].name == "db"
    assert plan[0].files == ["db/a.sql"]


@pytest.mark.parametrize(
    "data",
    [{"name": "db"}, [{"files": ["a"]}], [{"name": "db", "files": "a"}], "plan"],
)
def test_malformed_plan_data(data):
    with pytest.raises(ValidationError):
        plan_from_data(data)


def test_discovery_dict_keys():
    discovery = SplitDiscovery(changed_files=["a"], unassigned_files=["a"])

    assert set(discovery.to_dict()) == {
        "changed_files",
        "unassigned_files",
        "suggested_plan",
        "instructions",
    }
