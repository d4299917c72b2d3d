"""Terminal output with markup rendering."""

from __future__ import annotations

import os
import sys
from typing import TextIO

from prflow.domain.markup import Markup, render, render_plain


class Console:
    """Writes markup lines to stdout/stderr.

    Colors are used when the target stream is a TTY and ``NO_COLOR`` is unset,
    unless ``color`` forces a choice.
    """

    def __init__(self, stdout: TextIO | None = None, stderr: TextIO | None = None, *, color: bool | None = None) -> None:
        self._stdout = stdout
        self._stderr = stderr
        self._color = color

    @property
    def stdout(self) -> TextIO:
        return self._stdout or sys.stdout

    @property
    def stderr(self) -> TextIO:
        return self._stderr or sys.stderr

    def _use_color(self, stream: TextIO) -> bool:
        if self._color is not None:
            return self._color
        if os.environ.get("NO_COLOR"):
            return False
        isatty = getattr(stream, "isatty", None)
        return bool(isatty and isatty())

    def _write(self, stream: TextIO, markup: Markup) -> None:
        text = render(markup) if self._use_color(stream) else render_plain(markup)
        stream.write(text if text.endswith("\n") else text + "\n")

    def out(self, markup: Markup) -> None:
        self._write(self.stdout, markup)

    def err(self, markup: Markup) -> None:
        self._write(self.stderr, markup)

    def echo(self, text: str, *, error: bool = False) -> None:
        """Write ``text`` verbatim, without markup processing."""

        stream = self.stderr if error else self.stdout
        stream.write(text if text.endswith("\n") else text + "\n")
