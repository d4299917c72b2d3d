from __future__ import annotations

import io
from typing import Any

import pytest

from prflow.cli.commands import REGISTRY
from prflow.cli.console import Console
from prflow.cli.dispatcher import Dispatcher, FlagError, ParsedInvocation, parse_flags
from prflow.cli.registry import FlagDef, command, group, walk
from prflow.domain.errors import ExternalToolError, NotFoundError, PreconditionError, UserInputError


class Recorder:
    def __init__(self) -> None:
        self.calls: list[ParsedInvocation] = []

    def __call__(self, inv: ParsedInvocation, ctx: Any) -> int | None:
        self.calls.append(inv)
        return None


def _raiser(exc: Exception):  # noqa: ANN202
    def handler(inv: ParsedInvocation, ctx: Any) -> int:
        raise exc

    return handler


@pytest.fixture()
def streams() -> tuple[io.StringIO, io.StringIO]:
    return io.StringIO(), io.StringIO()


def _tree(recorder: Recorder):  # noqa: ANN202
    return group(
        "prflow",
        "",
        [
            group(
                "pr",
                "Pull requests",
                [
                    command(
                        "new",
                        "Create a pull request",
                        recorder,
                        flags=[FlagDef("l", True, "Ticket", "TICKET"), FlagDef("d"), FlagDef("e")],
                        usage="[flags] TITLE...",
                    ),
                    command("list", "List pull requests", recorder),
                ],
            ),
            command("version", "Version", lambda inv, ctx: 3),
        ],
    )


def _dispatcher(tree, streams) -> Dispatcher:  # noqa: ANN001
    out, err = streams
    return Dispatcher(tree, context=None, console=Console(out, err, color=False))


def test_empty_argv_prints_root_help(streams) -> None:  # noqa: ANN001
    recorder = Recorder()
    assert _dispatcher(_tree(recorder), streams).dispatch([]) == 0
    assert "Usage: prflow <command>" in streams[0].getvalue()
    assert recorder.calls == []


def test_group_without_subcommand_prints_its_help(streams) -> None:  # noqa: ANN001
    assert _dispatcher(_tree(Recorder()), streams).dispatch(["pr"]) == 0
    assert "Usage: prflow pr <command>" in streams[0].getvalue()


def test_unknown_subcommand_reports_and_prints_help(streams) -> None:  # noqa: ANN001
    assert _dispatcher(_tree(Recorder()), streams).dispatch(["pr", "bogus"]) == 1
    out, err = streams
    assert "unknown subcommand 'bogus'" in err.getvalue()
    assert "Usage: prflow pr <command>" in out.getvalue()


def test_unknown_top_level_command(streams) -> None:  # noqa: ANN001
    assert _dispatcher(_tree(Recorder()), streams).dispatch(["bogus", "x"]) == 1
    assert "'bogus'" in streams[1].getvalue()


def test_flag_value_reaches_handler(streams) -> None:  # noqa: ANN001
    recorder = Recorder()
    code = _dispatcher(_tree(recorder), streams).dispatch(["pr", "new", "-l", "STA-123", "Fix", "bug", "-d"])
    assert code == 0
    (inv,) = recorder.calls
    assert inv.path == ("pr", "new")
    assert inv.flags == {"l": "STA-123", "d": True}
    assert inv.args == ("Fix", "bug")


def test_handler_exit_code_propagates(streams) -> None:  # noqa: ANN001
    assert _dispatcher(_tree(Recorder()), streams).dispatch(["version"]) == 3


def test_unknown_flag(streams) -> None:  # noqa: ANN001
    recorder = Recorder()
    assert _dispatcher(_tree(recorder), streams).dispatch(["pr", "new", "-x", "title"]) == 1
    assert "unknown flag -x" in streams[1].getvalue()
    assert "Usage: prflow pr new" in streams[0].getvalue()
    assert recorder.calls == []


def test_missing_flag_value(streams) -> None:  # noqa: ANN001
    assert _dispatcher(_tree(Recorder()), streams).dispatch(["pr", "new", "title", "-l"]) == 1
    err = streams[1].getvalue()
    assert "flag -l requires a value" in err
    assert "unknown flag" not in err


@pytest.mark.parametrize(
    "argv",
    [
        ["-h"],
        ["pr", "-h"],
        ["pr", "-h", "bogus", "--weird"],
        ["pr", "bogus", "-h"],
        ["pr", "new", "-h"],
        ["pr", "new", "-l", "-h"],
        ["pr", "new", "-x", "-h"],
        ["pr", "new", "title", "-h", "-l"],
    ],
)
def test_help_wins_over_every_error(argv: list[str], streams) -> None:  # noqa: ANN001
    recorder = Recorder()
    assert _dispatcher(_tree(recorder), streams).dispatch(argv) == 0
    assert recorder.calls == []
    assert streams[1].getvalue() == ""
    assert "Usage:" in streams[0].getvalue()


def test_help_is_for_deepest_resolved_node(streams) -> None:  # noqa: ANN001
    _dispatcher(_tree(Recorder()), streams).dispatch(["pr", "new", "-l", "-h"])
    assert streams[0].getvalue().startswith("Usage: prflow pr new [flags] TITLE...")


@pytest.mark.parametrize(
    "argv",
    [
        ["pr", "new", "-dh"],
        ["pr", "new", "-hd"],
        ["pr", "new", "Fix", "-edh"],
        ["pr", "-dh"],
    ],
)
def test_help_inside_flag_cluster(argv: list[str], streams) -> None:  # noqa: ANN001
    recorder = Recorder()
    assert _dispatcher(_tree(recorder), streams).dispatch(argv) == 0
    assert recorder.calls == []
    assert "Usage:" in streams[0].getvalue()


@pytest.mark.parametrize("argv, ticket", [(["pr", "new", "-lh", "t"], "h"), (["pr", "new", "-dlh", "t"], "h")])
def test_h_after_value_flag_is_its_value(argv: list[str], ticket: str, streams) -> None:  # noqa: ANN001
    recorder = Recorder()
    assert _dispatcher(_tree(recorder), streams).dispatch(argv) == 0
    (inv,) = recorder.calls
    assert inv.flag("l") == ticket
    assert inv.args == ("t",)


def test_unknown_subcommand_is_printed_literally(streams) -> None:  # noqa: ANN001
    out, err = streams
    dispatcher = Dispatcher(_tree(Recorder()), context=None, console=Console(out, err, color=True))
    assert dispatcher.dispatch(["pr", "@red[[x]]"]) == 1
    assert "unknown subcommand '@red[[x]]'" in err.getvalue()
    assert "\x1b[31mx" not in err.getvalue()


def test_error_messages_are_printed_literally(streams) -> None:  # noqa: ANN001
    out, err = streams
    tree = group("prflow", "", [command("boom", "Fails", _raiser(UserInputError("bad title '@b[[x]]'", hint="@u[[y]]")))])
    Dispatcher(tree, context=None, console=Console(out, err, color=True)).dispatch(["boom"])
    assert "bad title '@b[[x]]'" in err.getvalue()
    assert "@u[[y]]" in err.getvalue()


def test_help_precedence_holds_for_every_registered_node() -> None:
    for path, node in walk(REGISTRY):
        out, err = io.StringIO(), io.StringIO()
        dispatcher = Dispatcher(REGISTRY, context=None, console=Console(out, err, color=False))
        assert dispatcher.dispatch([*path, "-h", "-z", "bogus"]) == 0, path
        assert err.getvalue() == "", path
        usage = "Usage: " + " ".join(("prflow", *path))
        assert usage in out.getvalue(), path


def test_on_complete_receives_path_and_code(streams) -> None:  # noqa: ANN001
    seen: list[tuple[tuple[str, ...], int]] = []
    out, err = streams
    dispatcher = Dispatcher(_tree(Recorder()), None, Console(out, err, color=False), on_complete=lambda p, c: seen.append((p, c)))
    dispatcher.dispatch(["pr", "list"])
    dispatcher.dispatch(["pr", "bogus"])
    assert seen == [(("pr", "list"), 0), (("pr",), 1)]


@pytest.mark.parametrize(
    "exc, code, stream, text",
    [
        (UserInputError("missing reviewer", hint="pass a login"), 1, 1, "missing reviewer"),
        (PreconditionError("dirty tree", detail=" M file.py"), 1, 1, " M file.py"),
        (NotFoundError("No open pull requests.", expected=True), 0, 0, "No open pull requests."),
        (NotFoundError("No pull request found for branch 'x'."), 1, 1, "No pull request found"),
        (ExternalToolError("git push", "rejected: non-fast-forward", returncode=128), 128, 1, "rejected: non-fast-forward"),
    ],
)
def test_handler_errors_map_to_exit_codes(exc: Exception, code: int, stream: int, text: str, streams) -> None:  # noqa: ANN001
    tree = group("prflow", "", [command("boom", "Fails", _raiser(exc))])
    assert _dispatcher(tree, streams).dispatch(["boom"]) == code
    assert text in streams[stream].getvalue()


def test_user_input_error_prints_hint_and_help(streams) -> None:  # noqa: ANN001
    tree = group("prflow", "", [command("boom", "Fails", _raiser(UserInputError("bad", hint="do better")))])
    _dispatcher(tree, streams).dispatch(["boom"])
    assert "hint: do better" in streams[1].getvalue()
    assert "Usage: prflow boom" in streams[0].getvalue()


class TestParseFlags:
    node = command(
        "new",
        "x",
        lambda inv, ctx: 0,
        flags=[FlagDef("l", True, metavar="TICKET"), FlagDef("d"), FlagDef("e")],
    )

    def test_clustered_flags(self) -> None:
        assert parse_flags(self.node, ["-de", "t"]) == ({"d": True, "e": True}, ("t",))

    def test_attached_value(self) -> None:
        assert parse_flags(self.node, ["-lSTA-1"]) == ({"l": "STA-1"}, ())

    def test_cluster_ending_in_value_flag(self) -> None:
        assert parse_flags(self.node, ["-dl", "STA-2"]) == ({"d": True, "l": "STA-2"}, ())

    def test_value_may_look_like_a_flag(self) -> None:
        assert parse_flags(self.node, ["-l", "-d"]) == ({"l": "-d"}, ())

    def test_double_dash_ends_flags(self) -> None:
        assert parse_flags(self.node, ["-d", "--", "-e", "x"]) == ({"d": True}, ("-e", "x"))

    def test_single_dash_is_positional(self) -> None:
        assert parse_flags(self.node, ["-"]) == ({}, ("-",))

    def test_long_options_are_unknown(self) -> None:
        with pytest.raises(FlagError, match="--draft"):
            parse_flags(self.node, ["--draft"])

    def test_last_value_wins(self) -> None:
        assert parse_flags(self.node, ["-l", "A-1", "-l", "B-2"])[0] == {"l": "B-2"}
