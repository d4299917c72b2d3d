"""Pull request workflows."""

from .service import PullRequestService  # noqa: F401

__all__ = ["PullRequestService"]
