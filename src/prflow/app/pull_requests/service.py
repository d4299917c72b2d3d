"""Pull request workflows sequenced over the version-control and hosting ports."""

from __future__ import annotations

from typing import Callable, Sequence

from prflow.domain.errors import NotFoundError, PreconditionError, UserInputError
from prflow.domain.markup import Markup, compose, styled
from prflow.domain.pull_request import PullRequest, PullRequestDraft
from prflow.domain.text import branch_name, is_ticket, pull_request_title, scratch_filename, trim
from prflow.ports.hosting import HostingClient
from prflow.ports.interaction import Browser, Editor, Selector
from prflow.ports.vcs import VersionControl
from prflow.settings import RuntimeSettings
from prflow.utils.telemetry import record_event

BODY_TEMPLATE = """\
## Summary


## Testing

"""


def _ignore(_: Markup) -> None:
    return None


class PullRequestService:
    """Each workflow validates first and stops at the first failing step.

    ``notify`` receives markup status lines while a workflow progresses.
    """

    def __init__(
        self,
        settings: RuntimeSettings,
        vcs: VersionControl,
        hosting: Callable[[], HostingClient],
        *,
        selector: Selector | None = None,
        editor: Editor | None = None,
        browser: Browser | None = None,
        notify: Callable[[Markup], None] = _ignore,
    ) -> None:
        self._settings = settings
        self._vcs = vcs
        self._hosting_factory = hosting
        self._hosting: HostingClient | None = None
        self._selector = selector
        self._editor = editor
        self._browser = browser
        self._notify = notify

    @property
    def hosting(self) -> HostingClient:
        if self._hosting is None:
            self._hosting = self._hosting_factory()
        return self._hosting

    def _require_clean_tree(self, action: str) -> None:
        status = self._vcs.status()
        if status.strip():
            raise PreconditionError(
                f"working tree has uncommitted changes; cannot {action}",
                detail=status.rstrip(),
                hint="Commit or stash your changes first.",
            )

    def _edit_text(self, branch: str, initial: str) -> str:
        if self._editor is None:
            raise UserInputError("no editor configured", hint="Set $VISUAL or $EDITOR.")
        path = self._settings.scratch_path(scratch_filename(branch))
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(initial, encoding="utf-8")
        self._editor.edit(path)
        return path.read_text(encoding="utf-8")

    def _discard_scratch(self, branch: str) -> None:
        path = self._settings.scratch_path(scratch_filename(branch))
        if path.exists():
            path.unlink()

    def create(
        self,
        words: Sequence[str],
        *,
        ticket: str | None = None,
        base: str | None = None,
        reviewer: str | None = None,
        draft: bool = False,
        edit_body: bool = False,
    ) -> PullRequest:
        raw_title = trim(" ".join(words))
        if ticket is not None and not is_ticket(ticket):
            raise UserInputError(f"invalid ticket id {ticket!r}", hint="Expected something like STA-123.")
        title = pull_request_title(raw_title, ticket)
        branch = branch_name(raw_title, ticket=ticket, prefix=self._settings.branch_prefix)
        self._require_clean_tree("create a pull request")
        target = base or self._settings.default_base or self._vcs.primary_branch_name()
        body = self._edit_text(branch, BODY_TEMPLATE) if edit_body else ""

        self._notify(compose("Creating branch ", styled(branch, "cyan"), " from ", styled(target, "cyan")))
        self._vcs.checkout(branch, create=True, start_point=target)
        self._vcs.commit(title, allow_empty=True)
        self._notify(compose("Pushing ", styled(branch, "cyan")))
        self._vcs.push(branch, set_upstream=True)
        pull_request = self.hosting.create_pull_request(
            PullRequestDraft(
                title=title,
                head=branch,
                base=target,
                body=body.strip(),
                draft=draft,
                reviewers=(reviewer,) if reviewer else (),
            )
        )
        if edit_body:
            self._discard_scratch(branch)
        record_event(self._settings, "pr.create", {"number": pull_request.number, "draft": draft, "status": "created"})
        self._notify(compose(f"@green[[Created]] #{pull_request.number} ", styled(pull_request.url, "u")))
        return pull_request

    def list_open(self, *, all_authors: bool = False) -> list[PullRequest]:
        author = None if all_authors else self.hosting.current_user()
        pull_requests = self.hosting.list_pull_requests(state="open", author=author)
        if not pull_requests:
            raise NotFoundError("No open pull requests.", expected=True)
        return pull_requests

    def checkout_selected(self) -> PullRequest | None:
        pull_requests = self.list_open(all_authors=True)
        if self._selector is None:
            raise UserInputError("no selector available")
        by_label = {pr.label(): pr for pr in pull_requests}
        choice = self._selector.select(list(by_label), prompt="pull request> ")
        if choice is None or choice not in by_label:
            self._notify("@yellow[[Selection aborted.]]")
            return None
        selected = by_label[choice]
        self._require_clean_tree(f"switch to {selected.head}")
        self._vcs.fetch()
        self._vcs.checkout(selected.head)
        self._notify(compose("Switched to ", styled(selected.head, "cyan"), f" (#{selected.number})"))
        return selected

    def current(self) -> PullRequest:
        branch = self._vcs.current_branch()
        pull_request = self.hosting.find_for_branch(branch)
        if pull_request is None:
            raise NotFoundError(f"No pull request found for branch '{branch}'.")
        return pull_request

    def open_in_browser(self, pull_request: PullRequest | None = None) -> PullRequest:
        target = pull_request or self.current()
        if self._browser is None:
            raise UserInputError("no browser available")
        self._browser.focus_or_open(target.url, prefix=target.url)
        return target

    def edit_description(self) -> PullRequest:
        pull_request = self.current()
        updated_body = self._edit_text(pull_request.head, pull_request.body)
        if updated_body.strip() == pull_request.body.strip():
            self._discard_scratch(pull_request.head)
            self._notify("@yellow[[Description unchanged.]]")
            return pull_request
        result = self.hosting.edit_pull_request(pull_request.number, body=updated_body.strip())
        self._discard_scratch(pull_request.head)
        self._notify(f"@green[[Updated]] description of #{result.number}")
        return result

    def request_review(self, reviewer: str | None) -> PullRequest:
        if not reviewer or not reviewer.strip():
            raise UserInputError("missing reviewer", hint="Usage: prflow pr review <login>")
        pull_request = self.current()
        login = reviewer.strip().lstrip("@")
        self.hosting.request_reviewers(pull_request.number, [login])
        self._notify(compose("Requested review from ", styled(login, "cyan"), f" on #{pull_request.number}"))
        return pull_request

    def mark_ready(self) -> PullRequest:
        pull_request = self.current()
        if not pull_request.draft:
            self._notify(f"#{pull_request.number} is already ready for review.")
            return pull_request
        result = self.hosting.edit_pull_request(pull_request.number, draft=False)
        self._notify(f"@green[[Ready for review]] #{result.number}")
        return result
