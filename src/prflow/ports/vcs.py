"""Port for version-control operations."""

from __future__ import annotations

from abc import ABC, abstractmethod


class VersionControl(ABC):
    """Operations prflow needs from a working copy."""

    @abstractmethod
    def current_branch(self) -> str:
        """Name of the checked-out branch."""

    @abstractmethod
    def primary_branch_name(self) -> str:
        """Name of the repository's main line of development."""

    @abstractmethod
    def status(self) -> str:
        """Short status listing; empty when the working tree is clean."""

    def is_working_tree_clean(self) -> bool:
        return not self.status().strip()

    @abstractmethod
    def fetch(self, remote: str = "origin") -> None:
        ...

    @abstractmethod
    def pull(self) -> str:
        """Fast-forward the current branch; returns the tool's summary."""

    @abstractmethod
    def push(self, branch: str, *, set_upstream: bool = False, remote: str = "origin") -> None:
        ...

    @abstractmethod
    def checkout(self, branch: str, *, create: bool = False, start_point: str | None = None) -> None:
        ...

    @abstractmethod
    def commit(self, message: str, *, allow_empty: bool = False) -> None:
        ...

    @abstractmethod
    def remote_url(self, remote: str = "origin") -> str:
        ...
