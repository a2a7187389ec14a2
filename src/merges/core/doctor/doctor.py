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


from collections import Counter
from dataclasses import asdict, dataclass, field

from loguru import logger

from merges.constants import STATE_FILE
from merges.core.exceptions import GitError
from merges.core.git_commands.git_commands import GitCommands
from merges.core.state.models import MergesState
from merges.core.workspace.workspace import WorkspaceProvider


@dataclass
class DoctorIssue:
    kind: str
    message: str
    chunk: str | None = None
    fixed: bool = False


@dataclass
class DoctorReport:
    issues: list[DoctorIssue] = field(default_factory=list)

    @property
    def healthy(self) -> bool:
        return all(issue.fixed for issue in self.issues)

    def to_dict(self) -> dict:
        return {"healthy": self.healthy, "issues": [asdict(i) for i in self.issues]}


class Doctor:
    """Checks that the persisted plan and the repository still agree."""

    def __init__(self, git_commands: GitCommands, workspaces: WorkspaceProvider):
        self.git = git_commands
        self.workspaces = workspaces

    def check(self, state: MergesState, repair: bool = False) -> DoctorReport:
        report = DoctorReport()
        report.issues += self._check_branches(state, repair)
        report.issues += self._check_exclude(repair)
        report.issues += self._check_partition(state)
        report.issues += self._check_changed(state)

        for issue in report.issues:
            logger.debug(
                "doctor: {kind} {chunk} fixed={fixed}",
                kind=issue.kind,
                chunk=issue.chunk or "-",
                fixed=issue.fixed,
            )
        return report

    def _check_branches(self, state: MergesState, repair: bool) -> list[DoctorIssue]:
        issues = []
        for chunk in state.chunks:
            if not self.git.branch_exists(chunk.branch):
                issues.append(
                    DoctorIssue(
                        "missing_branch",
                        f"Branch {chunk.branch} does not exist",
                        chunk.name,
                    )
                )
                continue

            if not state.use_worktrees:
                continue
            path = self.workspaces.worktree_path(chunk.branch)
            if path.exists():
                continue
            fixed = False
            if repair:
                try:
                    fixed = self.workspaces.ensure_worktree(chunk.branch)
                except GitError as e:
                    logger.warning(f"Could not recreate worktree {path}: {e.message}")
            issues.append(
                DoctorIssue(
                    "missing_worktree", f"Worktree missing: {path}", chunk.name, fixed
                )
            )
        return issues

    def _check_exclude(self, repair: bool) -> list[DoctorIssue]:
        if self.git.is_excluded(STATE_FILE):
            return []
        fixed = False
        if repair:
            self.git.ensure_excluded(STATE_FILE)
            fixed = True
        return [
            DoctorIssue(
                "not_excluded",
                f"{STATE_FILE} is not listed in .git/info/exclude",
                fixed=fixed,
            )
        ]

    @staticmethod
    def _check_partition(state: MergesState) -> list[DoctorIssue]:
        issues = []
        name_counts = Counter(chunk.name for chunk in state.chunks)
        for name, count in sorted(name_counts.items()):
            if count > 1:
                issues.append(
                    DoctorIssue("duplicate_chunk", f"Chunk name used {count} times", name)
                )

        owners: dict[str, list[str]] = {}
        for chunk in state.chunks:
            for path in chunk.files:
                owners.setdefault(path, []).append(chunk.name)
        for path, names in sorted(owners.items()):
            if len(names) > 1:
                issues.append(
                    DoctorIssue(
                        "duplicate_file",
                        f"{path} is in several chunks: {', '.join(names)}",
                    )
                )
        return issues

    def _check_changed(self, state: MergesState) -> list[DoctorIssue]:
        try:
            changed = set(
                self.git.get_changed_files(state.base_branch, state.source_branch)
            )
        except GitError as e:
            return [DoctorIssue("unreadable_diff", e.message)]

        issues = []
        for chunk in state.chunks:
            for path in chunk.files:
                if path not in changed:
                    issues.append(
                        DoctorIssue(
                            "stale_file",
                            f"{path} no longer differs from {state.base_branch}",
                            chunk.name,
                        )
                    )
        return issues
