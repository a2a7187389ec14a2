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

from merges.core.grouper.directory_grouper import DirectoryGrouper


def as_dict(proposals):
    return {p.name: p.files for p in proposals}


@pytest.fixture
def grouper():
    return DirectoryGrouper()


def test_several_top_dirs_group_by_top_dir(grouper):
    proposals = grouper.group(
        ["db/a.sql", "db/b.sql", "src/models/c.py", "src/models/d.py"]
    )

    assert as_dict(proposals) == {
        "db": ["db/a.sql", "db/b.sql"],
        "src": ["src/models/c.py", "src/models/d.py"],
    }


def test_single_top_dir_groups_by_second_level(grouper):
    proposals = grouper.group(["src/models/a.py", "src/api/b.py"])

    assert [p.name for p in proposals] == ["api", "models"]
    assert as_dict(proposals)["models"] == ["src/models/a.py"]


def test_files_directly_in_single_top_dir_form_their_own_group(grouper):
    proposals = grouper.group(["src/main.py", "src/api/b.py"])

    assert as_dict(proposals) == {"api": ["src/api/b.py"], "src": ["src/main.py"]}


def test_root_files_get_their_own_group(grouper):
    proposals = grouper.group(["setup.cfg", "README.md", "db/a.sql"])

    assert as_dict(proposals) == {
        "db": ["db/a.sql"],
        "root": ["README.md", "setup.cfg"],
    }


def test_root_files_join_the_only_other_group_when_not_separate():
    grouper = DirectoryGrouper(root_files_separate=False)

    proposals = grouper.group(["setup.cfg", "db/a.sql"])

    assert as_dict(proposals) == {"db": ["db/a.sql", "setup.cfg"]}


def test_root_files_stay_separate_with_several_other_groups():
    grouper = DirectoryGrouper(root_group_name="misc", root_files_separate=False)

    proposals = grouper.group(["setup.cfg", "db/a.sql", "docs/x.md"])

    assert set(as_dict(proposals)) == {"db", "docs", "misc"}


def test_grouping_is_deterministic_and_partitions_input(grouper):
    files = ["z/1", "a/2", "setup.py", "a/b/3", "./a/4", "z/1"]

    first = grouper.group(files)
    second = grouper.group(list(reversed(files)))

    assert first == second
    grouped = [f for p in first for f in p.files]
    assert sorted(grouped) == ["a/2", "a/4", "a/b/3", "setup.py", "z/1"]
    assert len(grouped) == len(set(grouped))


def test_empty_input_gives_no_groups(grouper):
    assert grouper.group([]) == []
    assert grouper.group(["  ", "./"]) == []


def test_paths_are_kept_verbatim(grouper):
    proposals = grouper.group(["docs/café.md", "db/weird\\name.sql"])

    assert as_dict(proposals) == {
        "db": ["db/weird\\name.sql"],
        "docs": ["docs/café.md"],
    }
