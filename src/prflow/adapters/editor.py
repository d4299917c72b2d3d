"""Editor port that spawns the user's configured editor command."""

from __future__ import annotations

import shlex
import subprocess
from pathlib import Path

from prflow.domain.errors import ExternalToolError
from prflow.ports.interaction import Editor


class CommandEditor(Editor):
    def __init__(self, command: str) -> None:
        self._argv = shlex.split(command) or ["vi"]

    def edit(self, path: Path) -> None:
        try:
            result = subprocess.run([*self._argv, str(path)])
        except FileNotFoundError as exc:
            raise ExternalToolError(self._argv[0], "editor executable not found") from exc
        if result.returncode != 0:
            raise ExternalToolError(self._argv[0], "editor exited with an error", returncode=result.returncode)
