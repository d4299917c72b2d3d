"""Fuzzy selector backed by ``fzf``."""

from __future__ import annotations

import subprocess
from typing import Sequence

from prflow.domain.errors import ExternalToolError
from prflow.ports.interaction import Selector

ABORT_CODES = {1, 130}


class FzfSelector(Selector):
    def __init__(self, executable: str = "fzf") -> None:
        self._executable = executable

    def select(self, rows: Sequence[str], *, prompt: str = "> ") -> str | None:
        if not rows:
            return None
        command = [self._executable, "--prompt", prompt, "--height", "40%", "--reverse", "--delimiter", "\t"]
        try:
            result = subprocess.run(command, input="\n".join(rows), stdout=subprocess.PIPE, text=True)
        except FileNotFoundError as exc:
            raise ExternalToolError(self._executable, "executable not found; install fzf") from exc
        if result.returncode in ABORT_CODES:
            return None
        if result.returncode != 0:
            raise ExternalToolError(self._executable, "selection failed", returncode=result.returncode)
        choice = result.stdout.rstrip("\n")
        return choice or None
