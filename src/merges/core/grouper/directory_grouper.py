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


from merges.core.state.models import ChunkProposal


class DirectoryGrouper:
    """
    Proposes chunks from the shape of the changed paths.

    With a single top-level directory the second path segment names the
    group (``src/models/x`` -> ``models``); files sitting directly in that
    directory form a group named after it. With several top-level
    directories each one becomes a group. Files at the repository root go to
    ``root_group_name``.

    No I/O: the same input always gives the same proposals.
    """

    def __init__(self, root_group_name: str = "root", root_files_separate: bool = True):
        self.root_group_name = root_group_name
        self.root_files_separate = root_files_separate

    def group(self, files: list[str]) -> list[ChunkProposal]:
        paths = sorted({self._normalize(f) for f in files if self._normalize(f)})
        if not paths:
            return []

        top_dirs = {p.split("/")[0] for p in paths if "/" in p}
        by_second_level = len(top_dirs) == 1

        groups: dict[str, list[str]] = {}
        for path in paths:
            groups.setdefault(self._group_key(path, by_second_level), []).append(path)

        if not self.root_files_separate:
            self._fold_root_group(groups)

        return [
            ChunkProposal(name=name, files=sorted(groups[name]))
            for name in sorted(groups)
            if groups[name]
        ]

    def _group_key(self, path: str, by_second_level: bool) -> str:
        parts = path.split("/")
        if len(parts) == 1:
            return self.root_group_name
        if by_second_level and len(parts) >= 3:
            return parts[1]
        return parts[0]

    def _fold_root_group(self, groups: dict[str, list[str]]) -> None:
        # root files only join when there is exactly one other group to join
        others = [name for name in groups if name != self.root_group_name]
        if self.root_group_name in groups and len(others) == 1:
            groups[others[0]].extend(groups.pop(self.root_group_name))

    @staticmethod
    def _normalize(path: str) -> str:
        path = path.strip()
        while path.startswith("./"):
            path = path[2:]
        return path.strip("/")
