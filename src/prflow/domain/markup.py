"""Inline markup for terminal output.

A styled span is written as one or more ``@<style>`` prefixes followed by a
``[[...]]`` body, e.g. ``@b@red[[failed]]``. Anything that does not match the
grammar exactly is kept as literal text, so rendering never fails.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Sequence, Union

ESC = "\x1b["
RESET_ALL = f"{ESC}0m"


class StyleCode(Enum):
    RED = ("red", "31")
    GREEN = ("green", "32")
    YELLOW = ("yellow", "33")
    BLUE = ("blue", "34")
    MAGENTA = ("magenta", "35")
    CYAN = ("cyan", "36")
    WHITE = ("white", "37")
    RESET = ("reset", "0")
    BOLD = ("b", "1")
    UNDERLINE = ("u", "4")

    def __init__(self, tag: str, sgr: str) -> None:
        self.tag = tag
        self.sgr = sgr

    @property
    def sequence(self) -> str:
        return f"{ESC}{self.sgr}m"

    @classmethod
    def from_tag(cls, tag: str) -> "StyleCode":
        return _BY_TAG[tag]


_BY_TAG = {code.tag: code for code in StyleCode}

# "blue" must be tried before "b" so the longer name wins.
_NAMES = "|".join(sorted(_BY_TAG, key=len, reverse=True))
_SPAN_RE = re.compile(rf"((?:@(?:{_NAMES}))+)\[\[([^\]]*)\]\]")
_TAG_RE = re.compile(rf"@({_NAMES})")


@dataclass(frozen=True)
class Literal:
    text: str


@dataclass(frozen=True)
class StyledSpan:
    styles: tuple[StyleCode, ...]
    content: str


MarkupToken = Union[Literal, StyledSpan]
Markup = Union[str, Sequence[MarkupToken]]


def tokenize(text: str) -> list[MarkupToken]:
    """Split ``text`` into literal runs and styled spans."""

    tokens: list[MarkupToken] = []
    position = 0
    for match in _SPAN_RE.finditer(text):
        if match.start() > position:
            tokens.append(Literal(text[position : match.start()]))
        styles = tuple(StyleCode.from_tag(tag) for tag in _TAG_RE.findall(match.group(1)))
        tokens.append(StyledSpan(styles=styles, content=match.group(2)))
        position = match.end()
    if position < len(text):
        tokens.append(Literal(text[position:]))
    return tokens


def render_tokens(tokens: Iterable[MarkupToken], *, color: bool = True) -> str:
    parts: list[str] = []
    for token in tokens:
        if isinstance(token, Literal):
            parts.append(token.text)
        elif color:
            parts.extend(style.sequence for style in token.styles)
            parts.append(token.content)
            parts.append(RESET_ALL)
        else:
            parts.append(token.content)
    return "".join(parts)


def as_tokens(text: Markup) -> list[MarkupToken]:
    if isinstance(text, str):
        return tokenize(text)
    return list(text)


def compose(*parts: str | MarkupToken) -> list[MarkupToken]:
    """Join markup strings with ready-made tokens.

    Strings are parsed as markup; tokens are kept as they are, so text coming
    from users or remote services can be wrapped in :class:`Literal` or
    :func:`styled` and is never read as markup.
    """

    tokens: list[MarkupToken] = []
    for part in parts:
        if isinstance(part, str):
            tokens.extend(tokenize(part))
        else:
            tokens.append(part)
    return tokens


def styled(content: str, *tags: str) -> StyledSpan:
    return StyledSpan(styles=tuple(StyleCode.from_tag(tag) for tag in tags), content=content)


def render(text: Markup) -> str:
    """Replace every styled span with ANSI escape sequences."""

    return render_tokens(as_tokens(text), color=True)


def render_plain(text: Markup) -> str:
    """Drop styling and keep span contents (no-color output)."""

    return render_tokens(as_tokens(text), color=False)


strip = render_plain
