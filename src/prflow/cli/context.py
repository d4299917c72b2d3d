"""Collaborators handed to every command handler."""

from __future__ import annotations

from pathlib import Path

from prflow.adapters.browser import SystemBrowser
from prflow.adapters.editor import CommandEditor
from prflow.adapters.fzf import FzfSelector
from prflow.adapters.git_cli import GitCli
from prflow.adapters.github_api import GitHubClient, parse_remote
from prflow.app.maintenance import MaintenanceGate
from prflow.app.pull_requests import PullRequestService
from prflow.cli.console import Console
from prflow.ports import Browser, Editor, HostingClient, Selector, VersionControl
from prflow.settings import RuntimeSettings


class CommandContext:
    """Builds adapters on first use; tests pass doubles instead."""

    def __init__(
        self,
        settings: RuntimeSettings,
        console: Console | None = None,
        *,
        cwd: Path | None = None,
        vcs: VersionControl | None = None,
        hosting: HostingClient | None = None,
        selector: Selector | None = None,
        editor: Editor | None = None,
        browser: Browser | None = None,
        gate: MaintenanceGate | None = None,
    ) -> None:
        self.settings = settings
        self.console = console or Console()
        self._cwd = cwd
        self._vcs = vcs
        self._hosting = hosting
        self._selector = selector
        self._editor = editor
        self._browser = browser
        self._gate = gate
        self._pull_requests: PullRequestService | None = None

    @property
    def vcs(self) -> VersionControl:
        if self._vcs is None:
            self._vcs = GitCli(self._cwd or Path.cwd(), fallback_primary=self.settings.primary_branch)
        return self._vcs

    @property
    def hosting(self) -> HostingClient:
        if self._hosting is None:
            owner, repo = parse_remote(self.vcs.remote_url())
            self._hosting = GitHubClient(
                owner,
                repo,
                token_env=self.settings.token_env,
                api_url=self.settings.api_url,
            )
        return self._hosting

    @property
    def gate(self) -> MaintenanceGate:
        if self._gate is None:
            install_vcs = GitCli(self.settings.install_dir, fallback_primary=self.settings.primary_branch)
            self._gate = MaintenanceGate(self.settings, install_vcs, stderr=self.console.stderr)
        return self._gate

    @property
    def pull_requests(self) -> PullRequestService:
        if self._pull_requests is None:
            self._pull_requests = PullRequestService(
                self.settings,
                self.vcs,
                lambda: self.hosting,
                selector=self._selector or FzfSelector(),
                editor=self._editor or CommandEditor(self.settings.editor),
                browser=self._browser or SystemBrowser(),
                notify=self.console.out,
            )
        return self._pull_requests
