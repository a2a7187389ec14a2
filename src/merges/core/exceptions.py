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
Custom exception hierarchy for the merges CLI application.

Every failure the engine raises on purpose derives from ``mergesError`` and
carries a short user facing ``message`` plus optional technical ``details``.
The CLI and the tool surface both rely on that split: the message is shown,
the details go to the log (or to the JSON-RPC error payload).
"""

import contextlib
import functools

import typer
from loguru import logger


class mergesError(Exception):
    """
    Base exception for all merges-related errors.

    All merges-specific exceptions should inherit from this class
    to enable consistent error handling throughout the application.
    """

    def __init__(self, message: str, details: str | None = None):
        """
        Initialize a mergesError.

        Args:
            message: Main error message for the user
            details: Additional technical details for logging
        """
        self.message = message
        self.details = details
        super().__init__(message)


class GitError(mergesError):
    """
    Errors related to git operations.

    Raised when git commands fail or when git repository
    state is invalid for the requested operation.
    """

    pass


class DetachedHeadError(GitError):
    """Raised when on a detached HEAD."""

    pass


class RebaseConflictError(GitError):
    """
    Raised when a rebase stops on conflicting paths.

    The rebase is left in progress so the operator can resolve it.
    """

    def __init__(
        self,
        message: str,
        paths: list[str] | None = None,
        details: str | None = None,
    ):
        super().__init__(message, details)
        self.paths = list(paths or [])


class ValidationError(mergesError):
    """
    Input validation errors.

    Raised before any mutation when a plan, chunk name, file list
    or option is malformed. Nothing has been changed when this is raised.
    """

    pass


class ChunkNotFoundError(ValidationError):
    """Raised when a chunk name does not exist in the plan."""

    pass


class ConfigurationError(mergesError):
    """
    Configuration-related errors.

    Raised when configuration files are invalid, credentials are
    missing, or settings are incompatible with each other.
    """

    pass


class StateError(mergesError):
    """
    Errors reading or writing the persisted chunk plan.
    """

    pass


class RemoteError(mergesError):
    """
    Errors talking to the pull request host.

    Raised on authentication failures, rate limits, network errors
    and unexpected responses.
    """

    pass


class TransactionError(mergesError):
    """
    Raised when a multi-branch operation failed and was rolled back.
    """

    pass


class FileSystemError(mergesError):
    """
    File system operation errors.

    Raised when file or directory operations fail,
    such as permission issues or missing files.
    """

    pass


# Convenience functions for creating common errors
def git_not_found() -> GitError:
    """Create a GitError for when git is not available."""
    return GitError(
        "Git is not installed or not in PATH",
        "Please install git and ensure it's available in your PATH environment variable",
    )


def not_git_repository(path: str = ".") -> GitError:
    """Create a GitError for when not in a git repository."""
    return GitError(
        f"Not a git repository: {path}",
        "Run 'git init' to initialize a git repository or navigate to an existing repository",
    )


def state_missing(state_file: str) -> StateError:
    """Create a StateError for a repository that was never initialised."""
    return StateError(
        f"Could not read {state_file}. Run `merges init` first.",
        "The chunk plan is created by `merges init` in the repository root",
    )


def chunk_not_found(name: str, available: list[str]) -> ChunkNotFoundError:
    """Create a ChunkNotFoundError listing the chunks that do exist."""
    listing = ", ".join(available) if available else "(none)"
    return ChunkNotFoundError(
        f"Chunk '{name}' not found",
        f"Available chunks: {listing}",
    )


def missing_github_token() -> ConfigurationError:
    """Create a ConfigurationError for when no GitHub credentials are available."""
    return ConfigurationError(
        "No GitHub token found",
        "Run `gh auth login` or set the GITHUB_TOKEN environment variable",
    )


@contextlib.contextmanager
def _exception_handler(exit_on_fail: bool):
    try:
        yield
    except mergesError as e:
        logger.error(f"[red]{e.message}[/red]")
        if e.details:
            logger.info(e.details)
        if exit_on_fail:
            raise typer.Exit(1) from e
        raise
    except KeyboardInterrupt as e:
        logger.info("\n[yellow]Operation cancelled by user[/yellow]")
        raise typer.Exit(130) from e


def handle_merges_exception(func=None, *, exit_on_fail: bool = True):
    """
    Report mergesError failures to the user and exit with a non-zero code.

    Works both as a bare decorator and as a context manager::

        @handle_merges_exception
        def main(...): ...

        with handle_merges_exception(exit_on_fail=True):
            ...
    """
    if func is None:
        return _exception_handler(exit_on_fail)

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        with _exception_handler(exit_on_fail):
            return func(*args, **kwargs)

    return wrapper
