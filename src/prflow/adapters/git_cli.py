"""Version-control port backed by the ``git`` executable."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Sequence

from prflow.domain.errors import ExternalToolError
from prflow.ports.vcs import VersionControl


class GitCli(VersionControl):
    def __init__(self, root: Path, *, fallback_primary: str = "main") -> None:
        self._root = root
        self._fallback_primary = fallback_primary

    @property
    def root(self) -> Path:
        return self._root

    def _run(self, args: Sequence[str], *, check: bool = True) -> subprocess.CompletedProcess[str]:
        command = ["git", *args]
        try:
            result = subprocess.run(
                command,
                cwd=self._root,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except (FileNotFoundError, NotADirectoryError) as exc:
            raise ExternalToolError("git", str(exc)) from exc
        if check and result.returncode != 0:
            raise ExternalToolError("git " + args[0], result.stderr.strip(), returncode=result.returncode)
        return result

    def is_repository(self) -> bool:
        if not self._root.is_dir():
            return False
        result = self._run(["rev-parse", "--is-inside-work-tree"], check=False)
        return result.returncode == 0 and result.stdout.strip() == "true"

    def current_branch(self) -> str:
        return self._run(["rev-parse", "--abbrev-ref", "HEAD"]).stdout.strip()

    def primary_branch_name(self) -> str:
        result = self._run(["symbolic-ref", "--short", "refs/remotes/origin/HEAD"], check=False)
        if result.returncode == 0 and result.stdout.strip():
            return result.stdout.strip().split("/", 1)[-1]
        for candidate in dict.fromkeys((self._fallback_primary, "main", "master")):
            found = self._run(["rev-parse", "--verify", "--quiet", f"refs/heads/{candidate}"], check=False)
            if found.returncode == 0:
                return candidate
        return self._fallback_primary

    def status(self) -> str:
        return self._run(["status", "--porcelain"]).stdout

    def fetch(self, remote: str = "origin") -> None:
        self._run(["fetch", remote])

    def pull(self) -> str:
        return self._run(["pull", "--ff-only"]).stdout.strip()

    def push(self, branch: str, *, set_upstream: bool = False, remote: str = "origin") -> None:
        args = ["push"]
        if set_upstream:
            args.append("--set-upstream")
        args.extend([remote, branch])
        self._run(args)

    def checkout(self, branch: str, *, create: bool = False, start_point: str | None = None) -> None:
        args = ["checkout"]
        if create:
            args.append("-b")
        args.append(branch)
        if start_point:
            args.append(start_point)
        self._run(args)

    def commit(self, message: str, *, allow_empty: bool = False) -> None:
        args = ["commit", "-m", message]
        if allow_empty:
            args.append("--allow-empty")
        self._run(args)

    def remote_url(self, remote: str = "origin") -> str:
        return self._run(["remote", "get-url", remote]).stdout.strip()
