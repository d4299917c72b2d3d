"""String transforms used by the pull-request commands."""

from __future__ import annotations

import re

from prflow.domain.errors import UserInputError

BRANCH_SLUG_LIMIT = 40

_WHITESPACE_RE = re.compile(r"\s+")
_WORD_RE = re.compile(r"[a-z]+")
_TICKET_RE = re.compile(r"^[A-Za-z][A-Za-z0-9]*-\d+$")


def trim(value: str) -> str:
    """Collapse whitespace runs and strip both ends."""

    return _WHITESPACE_RE.sub(" ", value).strip()


def slugify(title: str, max_length: int = BRANCH_SLUG_LIMIT) -> str:
    """Return lowercase letter runs of ``title`` joined by hyphens.

    >>> slugify("Fix Login Bug!!")
    'fix-login-bug'
    """

    slug = "-".join(_WORD_RE.findall(title.lower()))
    return slug[:max_length].strip("-")


def is_ticket(value: str) -> bool:
    return bool(_TICKET_RE.match(value))


def branch_name(title: str, *, ticket: str | None = None, prefix: str | None = None) -> str:
    slug = slugify(title)
    if not slug:
        raise UserInputError(
            f"cannot derive a branch name from title {title!r}",
            hint="Use a title that contains at least one letter.",
        )
    name = f"{ticket.lower()}-{slug}" if ticket else slug
    if prefix:
        name = f"{prefix.strip('/')}/{name}"
    return name


def pull_request_title(title: str, ticket: str | None = None) -> str:
    cleaned = trim(title)
    if not cleaned:
        raise UserInputError("pull request title is empty", hint="Pass the title as arguments: prflow pr new Fix login bug")
    if ticket:
        return f"{ticket.upper()}: {cleaned}"
    return cleaned


def scratch_filename(branch: str) -> str:
    """File name for the description scratch file of ``branch``."""

    safe = re.sub(r"[^A-Za-z0-9._-]+", "_", branch).strip("_") or "branch"
    return f"{safe}.md"
