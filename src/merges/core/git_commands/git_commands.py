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


import re
from functools import cached_property
from pathlib import Path
from subprocess import CompletedProcess

from loguru import logger

from merges.core.exceptions import DetachedHeadError, GitError
from merges.core.git_interface.interface import GitInterface

# rebase --continue would otherwise open an editor for the commit message
_NON_INTERACTIVE_ENV = {"GIT_EDITOR": "true", "GIT_SEQUENCE_EDITOR": "true"}


class GitCommands:
    """High level git primitives used by the chunk engine.

    Every method that mutates the repository raises ``GitError`` (with git's
    stderr as details) when git fails. Query helpers that can legitimately
    come back empty return ``None``/``False`` instead.
    """

    _VERSION_RE = re.compile(r"(\d+)\.(\d+)(?:\.(\d+))?")

    def __init__(self, git: GitInterface):
        self.git = git

    @property
    def repo_path(self) -> Path:
        return self.git.repo_path

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------

    def _run(
        self,
        args: list[str],
        cwd: str | Path | None = None,
        env: dict | None = None,
        error: str | None = None,
    ) -> str:
        result = self.git.run_git(args, env=env, cwd=cwd)
        if result.returncode != 0:
            output = (result.stderr or result.stdout or "").strip()
            raise GitError(error or f"git {' '.join(args[:2])} failed", output or None)
        return result.stdout

    def _succeeds(self, args: list[str], cwd: str | Path | None = None) -> bool:
        return self.git.run_git(args, cwd=cwd).returncode == 0

    def _lines(self, args: list[str], cwd: str | Path | None = None) -> list[str]:
        return [line for line in self._run(args, cwd=cwd).splitlines() if line.strip()]

    def _paths(self, args: list[str], cwd: str | Path | None = None) -> list[str]:
        """Paths from a ``-z`` listing, so git never quotes them."""
        return [path for path in self._run(args, cwd=cwd).split("\0") if path]

    # ------------------------------------------------------------------
    # repository
    # ------------------------------------------------------------------

    def is_git_repository(self) -> bool:
        out = self.git.run_git_text_out(["rev-parse", "--is-inside-work-tree"])
        return out is not None and out.strip() == "true"

    def get_repo_root(self) -> Path:
        out = self._run(
            ["rev-parse", "--show-toplevel"], error="Could not find repository root"
        )
        return Path(out.strip())

    def get_common_dir(self) -> Path:
        """The git dir shared by every worktree (where info/exclude lives)."""
        out = self._run(["rev-parse", "--git-common-dir"]).strip()
        return (Path(self.repo_path) / out).resolve()

    def get_version(self) -> tuple[int, ...]:
        out = self._run(["version"])
        match = self._VERSION_RE.search(out)
        if not match:
            raise GitError("Could not determine git version", out.strip())
        return tuple(int(part) for part in match.groups() if part is not None)

    @cached_property
    def version(self) -> tuple[int, ...]:
        return self.get_version()

    def set_config(self, key: str, value: str) -> None:
        self._run(["config", key, value], error=f"Failed to set git config {key}")

    def ensure_excluded(self, pattern: str) -> bool:
        """
        Make sure ``pattern`` is listed in info/exclude.

        Returns True when the entry had to be added.
        """
        exclude = self.get_common_dir() / "info" / "exclude"
        existing = ""
        if exclude.exists():
            existing = exclude.read_text(encoding="utf-8")
            if any(line.strip() == pattern for line in existing.splitlines()):
                return False

        exclude.parent.mkdir(parents=True, exist_ok=True)
        with open(exclude, "a", encoding="utf-8") as f:
            if existing and not existing.endswith("\n"):
                f.write("\n")
            f.write(f"{pattern}\n")
        logger.debug("Added {pattern} to {path}", pattern=pattern, path=exclude)
        return True

    def is_excluded(self, pattern: str) -> bool:
        exclude = self.get_common_dir() / "info" / "exclude"
        if not exclude.exists():
            return False
        lines = exclude.read_text(encoding="utf-8").splitlines()
        return any(line.strip() == pattern for line in lines)

    # ------------------------------------------------------------------
    # refs
    # ------------------------------------------------------------------

    def get_current_branch(self, cwd: str | Path | None = None) -> str:
        branch = self._run(["branch", "--show-current"], cwd=cwd).strip()
        if not branch:
            raise DetachedHeadError(
                "Currently on a detached HEAD",
                "Check out the branch you want to split before running merges",
            )
        return branch

    def branch_exists(self, name: str) -> bool:
        return self._succeeds(["rev-parse", "--verify", "--quiet", f"refs/heads/{name}"])

    def try_resolve_commit(
        self, ref: str, cwd: str | Path | None = None
    ) -> str | None:
        result = self.git.run_git(
            ["rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}"], cwd=cwd
        )
        if result.returncode != 0:
            return None
        return result.stdout.strip() or None

    def get_commit_hash(self, ref: str, cwd: str | Path | None = None) -> str:
        sha = self.try_resolve_commit(ref, cwd=cwd)
        if sha is None:
            raise GitError(f"Unknown revision: {ref}")
        return sha

    def get_blob_id(self, ref: str, path: str) -> str | None:
        result = self.git.run_git(["rev-parse", "--verify", "--quiet", f"{ref}:{path}"])
        if result.returncode != 0:
            return None
        return result.stdout.strip() or None

    def get_tree_id(self, ref: str) -> str:
        return self._run(["rev-parse", f"{ref}^{{tree}}"]).strip()

    def get_merge_base(self, first: str, second: str) -> str:
        out = self._run(
            ["merge-base", first, second],
            error=f"No common ancestor between {first} and {second}",
        )
        return out.strip()

    def is_ancestor(self, ancestor: str, descendant: str) -> bool:
        return self._succeeds(["merge-base", "--is-ancestor", ancestor, descendant])

    def count_commits_between(self, branch: str, base: str) -> int:
        """Number of commits reachable from ``base`` but not from ``branch``."""
        out = self._run(
            ["rev-list", "--count", f"{branch}..{base}"],
            error=f"Could not compare {branch} with {base}",
        )
        return int(out.strip() or 0)

    def list_files_in_commit(self, ref: str) -> list[str]:
        return self._paths(
            ["diff-tree", "-z", "--no-commit-id", "--name-only", "-r", ref]
        )

    # ------------------------------------------------------------------
    # diffs
    # ------------------------------------------------------------------

    def get_changed_files(self, base: str, head: str = "HEAD") -> list[str]:
        """Files that differ between the merge base of ``base``/``head`` and ``head``."""
        return self._paths(
            ["diff", "-z", "--name-only", "--no-renames", f"{base}...{head}"]
        )

    def get_changed_file_status(self, base: str, head: str = "HEAD") -> dict[str, str]:
        # -z output alternates status and path
        fields = self._paths(
            ["diff", "-z", "--name-status", "--no-renames", f"{base}...{head}"]
        )
        return {path: status[:1] for status, path in zip(fields[::2], fields[1::2])}

    def has_uncommitted_changes(self, cwd: str | Path | None = None) -> bool:
        out = self._run(["status", "--porcelain", "--untracked-files=no"], cwd=cwd)
        return bool(out.strip())

    def has_staged_changes(self, cwd: str | Path | None = None) -> bool:
        result = self.git.run_git(["diff", "--cached", "--quiet"], cwd=cwd)
        if result.returncode not in (0, 1):
            raise GitError("Could not inspect staged changes", result.stderr.strip())
        return result.returncode == 1

    # ------------------------------------------------------------------
    # branches and commits
    # ------------------------------------------------------------------

    def create_branch(self, name: str, start: str, cwd: str | Path | None = None) -> None:
        self._run(
            ["checkout", "-q", "-b", name, start],
            cwd=cwd,
            error=f"Failed to create branch {name}",
        )

    def checkout(self, ref: str, cwd: str | Path | None = None, force: bool = False) -> None:
        args = ["checkout", "-q"] + (["-f"] if force else []) + [ref]
        self._run(args, cwd=cwd, error=f"Failed to check out {ref}")

    def force_branch(self, name: str, sha: str) -> None:
        """Point a branch that is not checked out at ``sha``."""
        self._run(["branch", "-f", name, sha], error=f"Failed to reset branch {name}")

    def delete_branch(self, name: str) -> None:
        self._run(["branch", "-D", name], error=f"Failed to delete branch {name}")

    def checkout_paths(
        self, ref: str, paths: list[str], cwd: str | Path | None = None
    ) -> None:
        self._run(
            ["checkout", ref, "--"] + paths,
            cwd=cwd,
            error=f"Failed to check out files from {ref}",
        )

    def remove_paths(self, paths: list[str], cwd: str | Path | None = None) -> None:
        self._run(
            ["rm", "-q", "-r", "--ignore-unmatch", "--"] + paths,
            cwd=cwd,
            error="Failed to remove files",
        )

    def commit(
        self, message: str, cwd: str | Path | None = None, allow_empty: bool = False
    ) -> str:
        args = ["commit", "-q", "-m", message]
        if allow_empty:
            args.append("--allow-empty")
        self._run(args, cwd=cwd, error="Failed to commit")
        return self.get_commit_hash("HEAD", cwd=cwd)

    def amend(self, cwd: str | Path | None = None, allow_empty: bool = False) -> str:
        args = ["commit", "-q", "--amend", "--no-edit"]
        if allow_empty:
            args.append("--allow-empty")
        self._run(args, cwd=cwd, error="Failed to amend commit")
        return self.get_commit_hash("HEAD", cwd=cwd)

    def reset_hard(self, ref: str, cwd: str | Path | None = None) -> None:
        self._run(["reset", "-q", "--hard", ref], cwd=cwd, error=f"Failed to reset to {ref}")

    # ------------------------------------------------------------------
    # rebase
    # ------------------------------------------------------------------

    def rebase_onto(
        self,
        onto: str,
        upstream: str,
        branch: str | None = None,
        cwd: str | Path | None = None,
        update_refs: bool = False,
    ) -> CompletedProcess[str]:
        """
        Replay ``upstream..branch`` on top of ``onto``.

        The completed process is returned as is; a non-zero exit code
        usually means the rebase stopped on conflicts.
        """
        args = ["rebase", "--empty=keep"]
        if update_refs:
            args.append("--update-refs")
        args += ["--onto", onto, upstream]
        if branch:
            args.append(branch)
        return self.git.run_git(args, env=_NON_INTERACTIVE_ENV, cwd=cwd)

    def rebase_continue(self, cwd: str | Path | None = None) -> CompletedProcess[str]:
        return self.git.run_git(
            ["rebase", "--continue"], env=_NON_INTERACTIVE_ENV, cwd=cwd
        )

    def rebase_abort(self, cwd: str | Path | None = None) -> None:
        self._run(["rebase", "--abort"], cwd=cwd, error="Failed to abort rebase")

    def is_rebase_in_progress(self, cwd: str | Path | None = None) -> bool:
        base = Path(cwd) if cwd is not None else Path(self.repo_path)
        for name in ("rebase-merge", "rebase-apply"):
            out = self.git.run_git_text_out(["rev-parse", "--git-path", name], cwd=base)
            if out and (base / out.strip()).exists():
                return True
        return False

    def get_rebase_head_name(self, cwd: str | Path | None = None) -> str | None:
        """Short name of the branch a stopped rebase is rewriting."""
        base = Path(cwd) if cwd is not None else Path(self.repo_path)
        for name in ("rebase-merge/head-name", "rebase-apply/head-name"):
            out = self.git.run_git_text_out(["rev-parse", "--git-path", name], cwd=base)
            if not out:
                continue
            head_file = base / out.strip()
            if head_file.exists():
                head = head_file.read_text(encoding="utf-8").strip()
                return head.removeprefix("refs/heads/") or None
        return None

    def get_conflicted_paths(self, cwd: str | Path | None = None) -> list[str]:
        return self._paths(["diff", "-z", "--name-only", "--diff-filter=U"], cwd=cwd)

    def finish_rebase(self, cwd: str | Path | None = None, max_steps: int = 1000) -> list[str]:
        """
        Continue a stopped rebase while nothing is left unmerged.

        Returns the conflicting paths of the step it stopped on, or an empty
        list once the rebase has completed.
        """
        for _ in range(max_steps):
            if not self.is_rebase_in_progress(cwd):
                return []
            conflicts = self.get_conflicted_paths(cwd)
            if conflicts:
                return conflicts
            result = self.rebase_continue(cwd)
            if result.returncode != 0 and not self.get_conflicted_paths(cwd):
                if self.is_rebase_in_progress(cwd):
                    raise GitError(
                        "Rebase cannot continue",
                        (result.stderr or result.stdout).strip()
                        + "\nResolve it manually with `git rebase --continue` or `git rebase --skip`",
                    )
        raise GitError("Rebase did not finish", f"Gave up after {max_steps} steps")

    def supports_update_refs(self, minimum: tuple[int, int]) -> bool:
        return self.version[:2] >= minimum

    # ------------------------------------------------------------------
    # remotes
    # ------------------------------------------------------------------

    def has_remote(self, name: str) -> bool:
        return self._succeeds(["remote", "get-url", name])

    def get_remote_url(self, name: str) -> str:
        out = self._run(
            ["remote", "get-url", name],
            error=f"No remote named '{name}'",
        )
        return out.strip()

    def fetch(self, remote: str) -> None:
        self._run(["fetch", "--quiet", remote], error=f"Failed to fetch {remote}")

    def push_with_lease(
        self, remote: str, branch: str, cwd: str | Path | None = None
    ) -> None:
        """Force push that is rejected when the remote moved since the last fetch."""
        self._run(
            ["push", "--quiet", "--force-with-lease", "--set-upstream", remote, f"{branch}:{branch}"],
            cwd=cwd,
            error=f"Failed to push {branch}",
        )

    # ------------------------------------------------------------------
    # worktrees
    # ------------------------------------------------------------------

    def add_worktree(self, path: Path, branch: str, start: str | None = None) -> None:
        if start is not None:
            args = ["worktree", "add", "-q", "-b", branch, str(path), start]
        else:
            args = ["worktree", "add", "-q", str(path), branch]
        self._run(args, error=f"Failed to create worktree for {branch}")

    def remove_worktree(self, path: Path) -> None:
        self._run(
            ["worktree", "remove", "--force", str(path)],
            error=f"Failed to remove worktree {path}",
        )

    def prune_worktrees(self) -> None:
        self._run(["worktree", "prune"])

    def list_worktrees(self) -> list[Path]:
        worktrees = []
        for line in self._lines(["worktree", "list", "--porcelain"]):
            if line.startswith("worktree "):
                worktrees.append(Path(line[len("worktree ") :]))
        return worktrees
