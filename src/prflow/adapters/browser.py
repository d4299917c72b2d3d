"""Browser port: new tabs through :mod:`webbrowser`, tab focus through AppleScript."""

from __future__ import annotations

import subprocess
import sys
import webbrowser

from prflow.domain.errors import ExternalToolError
from prflow.ports.interaction import Browser

_FOCUS_SCRIPT = """
on run argv
    set prefix to item 1 of argv
    if application "Google Chrome" is not running then return "missing"
    tell application "Google Chrome"
        repeat with w in windows
            set idx to 0
            repeat with t in tabs of w
                set idx to idx + 1
                if (URL of t) starts with prefix then
                    set active tab index of w to idx
                    set index of w to 1
                    activate
                    return "found"
                end if
            end repeat
        end repeat
    end tell
    return "missing"
end run
"""


class SystemBrowser(Browser):
    def __init__(self, *, platform: str | None = None) -> None:
        self._platform = platform or sys.platform

    def open(self, url: str) -> None:
        if not webbrowser.open_new_tab(url):
            raise ExternalToolError("browser", f"could not open {url}")

    def focus_or_open(self, url: str, prefix: str | None = None) -> None:
        if self._platform == "darwin" and self._focus_tab(prefix or url):
            return
        self.open(url)

    def _focus_tab(self, prefix: str) -> bool:
        try:
            result = subprocess.run(
                ["osascript", "-e", _FOCUS_SCRIPT, prefix],
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
            )
        except FileNotFoundError:
            return False
        return result.returncode == 0 and result.stdout.strip() == "found"
