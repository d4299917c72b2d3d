"""The prflow command tree and its handlers."""

from __future__ import annotations

import json
from textwrap import dedent
from typing import Sequence

from prflow import __version__
from prflow.cli.context import CommandContext
from prflow.cli.dispatcher import ParsedInvocation
from prflow.cli.registry import CommandNode, FlagDef, command, command_help, group
from prflow.domain.errors import PreconditionError, UserInputError
from prflow.domain.json_query import format_result, query
from prflow.domain.markup import Literal, compose, styled
from prflow.domain.pull_request import PullRequest
from prflow.utils.telemetry import clear as telemetry_clear
from prflow.utils.telemetry import iter_events as telemetry_iter
from prflow.utils.telemetry import summarize as telemetry_summarize

HELP_OVERVIEW = dedent(
    """
    @b[[Typical flow:]]
      prflow pr new -l STA-123 Fix login bug   branch, push and open a PR
      prflow pr edit                           write the description in $EDITOR
      prflow pr review octocat                 ask for a review
      prflow pr open                           jump to the PR in the browser

    @b[[Environment:]]
      PRFLOW_HOME                  state and logs (default ~/.prflow)
      GITHUB_TOKEN                 API token (see token_env in config.yaml)
      PRFLOW_DISABLE_AUTO_UPDATE=1 skip the periodic self-update
      NO_COLOR=1                   plain output
    """
).strip("\n")


def _root_help(node: CommandNode, path: Sequence[str]) -> str:
    return f"prflow {__version__}: pull request workflows from the terminal\n\n{command_help(node, path)}\n\n{HELP_OVERVIEW}"


def _print_pull_request(ctx: CommandContext, pull_request: PullRequest) -> None:
    console = ctx.console
    state = "@yellow[[draft]]" if pull_request.draft else "@green[[open]]"
    console.out(compose(f"@b[[#{pull_request.number}]] ", Literal(pull_request.title)))
    console.out(compose(f"  {state}  ", Literal(f"{pull_request.head} -> {pull_request.base}")))
    console.out(compose("  ", styled(pull_request.url, "u")))
    if pull_request.body.strip():
        console.echo("")
        console.echo(pull_request.body.rstrip())


def _pr_new(inv: ParsedInvocation, ctx: CommandContext) -> int:
    ctx.pull_requests.create(
        inv.args,
        ticket=inv.flag("l"),
        base=inv.flag("b"),
        reviewer=inv.flag("r"),
        draft=inv.has("d"),
        edit_body=inv.has("e"),
    )
    return 0


def _pr_list(inv: ParsedInvocation, ctx: CommandContext) -> int:
    for pull_request in ctx.pull_requests.list_open(all_authors=inv.has("a")):
        marker = " @yellow[[draft]]" if pull_request.draft else ""
        ctx.console.out(
            compose(f"@cyan[[#{pull_request.number}]]  ", Literal(f"{pull_request.head}  {pull_request.title}"), marker)
        )
    return 0


def _pr_checkout(inv: ParsedInvocation, ctx: CommandContext) -> int:
    ctx.pull_requests.checkout_selected()
    return 0


def _pr_view(inv: ParsedInvocation, ctx: CommandContext) -> int:
    service = ctx.pull_requests
    pull_request = service.current()
    expression = inv.flag("f")
    if expression:
        for value in query(pull_request.raw, expression):
            ctx.console.echo(format_result(value))
    else:
        _print_pull_request(ctx, pull_request)
    if inv.has("w"):
        service.open_in_browser(pull_request)
    return 0


def _pr_open(inv: ParsedInvocation, ctx: CommandContext) -> int:
    pull_request = ctx.pull_requests.open_in_browser()
    ctx.console.out(compose("Opened ", styled(pull_request.url, "u")))
    return 0


def _pr_edit(inv: ParsedInvocation, ctx: CommandContext) -> int:
    ctx.pull_requests.edit_description()
    return 0


def _pr_review(inv: ParsedInvocation, ctx: CommandContext) -> int:
    reviewers = list(inv.args) or [None]
    for reviewer in reviewers:
        ctx.pull_requests.request_review(reviewer)
    return 0


def _pr_ready(inv: ParsedInvocation, ctx: CommandContext) -> int:
    ctx.pull_requests.mark_ready()
    return 0


def _self_update(inv: ParsedInvocation, ctx: CommandContext) -> int:
    gate = ctx.gate
    if not gate.is_checkout():
        raise PreconditionError(
            f"{ctx.settings.install_dir} is not a git checkout",
            hint="Set PRFLOW_INSTALL_DIR or install_dir in config.yaml to the prflow clone.",
        )
    outcome = gate.run_now()
    if outcome.action == "skipped":
        raise PreconditionError("self-update skipped", detail=outcome.detail)
    if outcome.action == "failed":
        return 1
    detail = (outcome.detail or "").strip()
    ctx.console.out(compose("@green[[Up to date]]", Literal(f" {detail}" if detail else "")))
    return 0


def _telemetry_report(inv: ParsedInvocation, ctx: CommandContext) -> int:
    summary = telemetry_summarize(telemetry_iter(ctx.settings))
    if inv.has("j"):
        ctx.console.echo(json.dumps(summary, ensure_ascii=False, indent=2))
        return 0
    ctx.console.out(f"@b[[Events:]] {summary['total']}")
    for name, count in sorted(summary["by_event"].items()):
        ctx.console.out(compose("  ", styled(name, "cyan"), f"  {count}"))
    for status, count in sorted(summary["by_status"].items()):
        ctx.console.out(compose("  status ", Literal(status), f"  {count}"))
    return 0


def _telemetry_tail(inv: ParsedInvocation, ctx: CommandContext) -> int:
    raw = inv.flag("n", "10")
    try:
        limit = int(raw)
    except ValueError:
        raise UserInputError(f"-n expects a number, got {raw!r}") from None
    if limit < 0:
        raise UserInputError("-n must not be negative")
    events = list(telemetry_iter(ctx.settings))
    for event in events[-limit:] if limit else []:
        ctx.console.echo(json.dumps(event, ensure_ascii=False))
    return 0


def _telemetry_clear(inv: ParsedInvocation, ctx: CommandContext) -> int:
    if telemetry_clear(ctx.settings):
        ctx.console.out("Telemetry log removed.")
    else:
        ctx.console.out("Telemetry log is already empty.")
    return 0


def _version(inv: ParsedInvocation, ctx: CommandContext) -> int:
    ctx.console.echo(f"prflow {__version__}")
    return 0


def build_registry() -> CommandNode:
    pr = group(
        "pr",
        "Create, inspect and update pull requests",
        [
            command(
                "new",
                "Create a branch from TITLE, push it and open a pull request",
                _pr_new,
                flags=[
                    FlagDef("l", True, "Ticket id, prefixed to the title and branch", "TICKET"),
                    FlagDef("b", True, "Base branch (default: the primary branch)", "BASE"),
                    FlagDef("r", True, "Request a review from this login", "REVIEWER"),
                    FlagDef("d", False, "Open as draft"),
                    FlagDef("e", False, "Write the description in the editor first"),
                ],
                usage="[flags] TITLE...",
            ),
            command(
                "list",
                "List your open pull requests",
                _pr_list,
                flags=[FlagDef("a", False, "Include pull requests of every author")],
            ),
            command("checkout", "Pick an open pull request and check out its branch", _pr_checkout),
            command(
                "view",
                "Show the pull request of the current branch",
                _pr_view,
                flags=[
                    FlagDef("f", True, "Print only the fields selected by a jq-style query", "QUERY"),
                    FlagDef("w", False, "Also open it in the browser"),
                ],
                details="Example: prflow pr view -f .head.ref",
            ),
            command("open", "Open the pull request of the current branch in the browser", _pr_open),
            command("edit", "Edit the description of the current branch's pull request", _pr_edit),
            command("review", "Request a review on the current branch's pull request", _pr_review, usage="REVIEWER..."),
            command("ready", "Mark the current branch's draft pull request ready for review", _pr_ready),
        ],
    )
    telemetry = group(
        "telemetry",
        "Inspect the local event log",
        [
            command("report", "Print aggregated event counts", _telemetry_report, flags=[FlagDef("j", False, "JSON output")]),
            command("tail", "Print the last events", _telemetry_tail, flags=[FlagDef("n", True, "Number of events (default 10)", "N")]),
            command("clear", "Remove the event log", _telemetry_clear),
        ],
    )
    return group(
        "prflow",
        "",
        [
            pr,
            command("self-update", "Pull the latest prflow into its checkout now", _self_update),
            telemetry,
            command("version", "Print the prflow version", _version),
        ],
        help_renderer=_root_help,
    )


REGISTRY = build_registry()
