"""Ports for interactive tools: fuzzy selector, editor, browser."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Sequence


class Selector(ABC):
    @abstractmethod
    def select(self, rows: Sequence[str], *, prompt: str = "> ") -> str | None:
        """Return the chosen row, or None when the user aborts."""


class Editor(ABC):
    @abstractmethod
    def edit(self, path: Path) -> None:
        """Open ``path`` and block until the user closes the editor."""


class Browser(ABC):
    @abstractmethod
    def open(self, url: str) -> None:
        """Open ``url`` in a new tab."""

    def focus_or_open(self, url: str, prefix: str | None = None) -> None:
        """Focus a tab whose URL starts with ``prefix``; open ``url`` otherwise."""

        self.open(url)
