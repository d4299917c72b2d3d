"""Throttled self-update of the prflow checkout."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, TextIO

from prflow.domain.errors import PrflowError
from prflow.ports.vcs import VersionControl
from prflow.settings import RuntimeSettings
from prflow.utils.telemetry import record_event

SELF_UPDATE_COMMAND = "self-update"


class GateState(str, Enum):
    UNKNOWN = "unknown"
    FRESH = "fresh"
    DUE = "due"


@dataclass(frozen=True)
class GateOutcome:
    state: GateState | None
    action: str
    detail: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.action in {"initialized", "idle", "updated"}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MaintenanceGate:
    """Pull the latest prflow into its checkout at most once per interval.

    The last check is the modification time of ``settings.maintenance_stamp``.
    A dirty checkout or one that is off its primary branch is left alone and
    the stamp is not touched, so the gate stays due until the checkout is
    usable again.
    """

    def __init__(
        self,
        settings: RuntimeSettings,
        vcs: VersionControl,
        *,
        clock: Callable[[], datetime] = _utcnow,
        stderr: TextIO | None = None,
    ) -> None:
        self._settings = settings
        self._vcs = vcs
        self._clock = clock
        self._stderr = stderr

    def _err(self, message: str) -> None:
        stream = self._stderr or sys.stderr
        stream.write(f"prflow: {message}\n")

    def last_checked(self) -> datetime | None:
        path = self._settings.maintenance_stamp
        if not path.exists():
            return None
        return datetime.fromtimestamp(path.stat().st_mtime, tz=timezone.utc)

    def state(self, now: datetime | None = None) -> GateState:
        last = self.last_checked()
        if last is None:
            return GateState.UNKNOWN
        current = now or self._clock()
        if current - last < self._settings.maintenance_interval:
            return GateState.FRESH
        return GateState.DUE

    def _stamp(self, now: datetime) -> None:
        path = self._settings.maintenance_stamp
        path.parent.mkdir(parents=True, exist_ok=True)
        path.touch()
        ts = now.timestamp()
        os.utime(path, (ts, ts))

    def _enabled(self, command: str | None) -> bool:
        if not self._settings.auto_update:
            return False
        if command == SELF_UPDATE_COMMAND:
            return False
        return self.is_checkout()

    def is_checkout(self) -> bool:
        return (self._settings.install_dir / ".git").exists()

    def maybe_run(self, *, command: str | None = None) -> GateOutcome:
        """Best-effort check run before every command; never raises."""

        if not self._enabled(command):
            return GateOutcome(None, "disabled")
        try:
            now = self._clock()
            state = self.state(now)
            if state is GateState.UNKNOWN:
                self._stamp(now)
                return GateOutcome(state, "initialized")
            if state is GateState.FRESH:
                return GateOutcome(state, "idle")
            return self._attempt(now, state)
        except Exception as exc:  # noqa: BLE001
            self._err(f"auto-update check failed: {exc}")
            return GateOutcome(None, "failed", str(exc))

    def run_now(self) -> GateOutcome:
        """Run the maintenance action regardless of the interval."""

        now = self._clock()
        return self._attempt(now, self.state(now))

    def _attempt(self, now: datetime, state: GateState) -> GateOutcome:
        status = self._vcs.status()
        if status.strip():
            self._record("skipped_dirty")
            return GateOutcome(state, "skipped", f"working tree of {self._settings.install_dir} is not clean:\n{status.rstrip()}")
        branch = self._vcs.current_branch()
        primary = self._vcs.primary_branch_name()
        if branch != primary:
            self._record("skipped_branch", branch=branch, primary=primary)
            return GateOutcome(state, "skipped", f"{self._settings.install_dir} is on '{branch}', not '{primary}'")
        try:
            summary = self._vcs.pull()
        except PrflowError as exc:
            # Stamp anyway so an unreachable remote is retried once per interval.
            self._stamp(now)
            self._record("failed", error=str(exc))
            self._err(f"auto-update failed: {exc}")
            return GateOutcome(state, "failed", str(exc))
        self._stamp(now)
        self._record("updated", summary=summary)
        return GateOutcome(state, "updated", summary)

    def _record(self, status: str, **payload: str) -> None:
        record_event(
            self._settings,
            "auto-update",
            {"status": status, "install_dir": str(self._settings.install_dir), **payload},
        )
