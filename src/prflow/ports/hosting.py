"""Port for the code-hosting API."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Sequence

from prflow.domain.pull_request import PullRequest, PullRequestDraft


class HostingClient(ABC):
    """Pull request operations on the hosting service."""

    @abstractmethod
    def current_user(self) -> str:
        """Login of the authenticated user."""

    @abstractmethod
    def create_pull_request(self, draft: PullRequestDraft) -> PullRequest:
        ...

    @abstractmethod
    def list_pull_requests(self, *, state: str = "open", author: str | None = None) -> list[PullRequest]:
        ...

    @abstractmethod
    def get_pull_request(self, number: int) -> PullRequest:
        ...

    @abstractmethod
    def edit_pull_request(
        self,
        number: int,
        *,
        title: str | None = None,
        body: str | None = None,
        base: str | None = None,
        draft: bool | None = None,
    ) -> PullRequest:
        ...

    @abstractmethod
    def request_reviewers(self, number: int, reviewers: Sequence[str]) -> None:
        ...

    def find_for_branch(self, head: str) -> PullRequest | None:
        """Open pull request whose head branch is ``head``, if any."""

        for pull_request in self.list_pull_requests(state="open"):
            if pull_request.head == head:
                return pull_request
        return None
