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


from abc import ABC, abstractmethod

from pydantic import BaseModel


class PullRequest(BaseModel):
    number: int
    url: str
    state: str
    merged: bool = False
    base_ref: str = ""
    head_ref: str = ""
    head_sha: str = ""
    title: str = ""

    @property
    def status(self) -> str:
        """open, closed or merged."""
        if self.merged:
            return "merged"
        return self.state


class Review(BaseModel):
    user: str = ""
    state: str


class CheckRun(BaseModel):
    name: str = ""
    status: str
    conclusion: str | None = None


class RemoteHost(ABC):
    """
    The pull request host of one repository.

    Implementations raise ``RemoteError`` for every failed request.
    """

    @abstractmethod
    def create_pull_request(
        self, title: str, head: str, base: str, body: str = ""
    ) -> PullRequest:
        """Open a pull request from ``head`` into ``base``."""

    @abstractmethod
    def get_pull_request(self, number: int) -> PullRequest:
        """Fetch one pull request."""

    @abstractmethod
    def update_pull_request_base(self, number: int, base: str) -> PullRequest:
        """Re-target a pull request at a different base branch."""

    @abstractmethod
    def get_combined_status(self, sha: str) -> str:
        """Combined commit status state: success, pending, failure or error."""

    @abstractmethod
    def list_check_runs(self, sha: str) -> list[CheckRun]:
        """Check runs reported for a commit."""

    @abstractmethod
    def list_reviews(self, number: int) -> list[Review]:
        """Reviews of a pull request, oldest first."""

    @abstractmethod
    def delete_branch(self, branch: str) -> bool:
        """Delete a branch on the host. Returns False if it was already gone."""

    def close(self) -> None:
        pass
