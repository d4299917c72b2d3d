"""Pull request records exchanged with the hosting client."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Tuple


class PullRequestRecordError(ValueError):
    """Raised when a hosting payload cannot be turned into a record."""


@dataclass(frozen=True)
class PullRequestDraft:
    title: str
    head: str
    base: str
    body: str = ""
    draft: bool = False
    reviewers: Tuple[str, ...] = ()


@dataclass(frozen=True)
class PullRequest:
    number: int
    title: str
    url: str
    head: str
    base: str
    body: str = ""
    draft: bool = False
    author: str | None = None
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_github(cls, payload: Dict[str, Any]) -> "PullRequest":
        if not isinstance(payload, dict):
            raise PullRequestRecordError("pull request payload must be an object")
        number = payload.get("number")
        if not isinstance(number, int):
            raise PullRequestRecordError("pull request payload has no numeric 'number'")
        head = payload.get("head") or {}
        base = payload.get("base") or {}
        user = payload.get("user") or {}
        return cls(
            number=number,
            title=str(payload.get("title") or ""),
            url=str(payload.get("html_url") or payload.get("url") or ""),
            head=str(head.get("ref") or ""),
            base=str(base.get("ref") or ""),
            body=str(payload.get("body") or ""),
            draft=bool(payload.get("draft", False)),
            author=user.get("login"),
            raw=payload,
        )

    def label(self) -> str:
        """One-line row used by listings and the fuzzy selector."""

        marker = " [draft]" if self.draft else ""
        author = f" @{self.author}" if self.author else ""
        return f"#{self.number}\t{self.head}\t{self.title}{marker}{author}"
