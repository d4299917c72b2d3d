"""Resolve argv against the command tree and run the selected handler."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Sequence

from prflow.cli.console import Console
from prflow.cli.registry import HELP_FLAG, CommandNode
from prflow.domain.errors import (
    ExternalToolError,
    NotFoundError,
    PreconditionError,
    PrflowError,
    UserInputError,
)
from prflow.domain.markup import Literal, compose

HELP_TOKEN = f"-{HELP_FLAG}"
END_OF_FLAGS = "--"


class FlagError(UserInputError):
    """Unknown flag or a flag missing its value."""


@dataclass
class ParsedInvocation:
    path: tuple[str, ...]
    flags: Dict[str, str | bool] = field(default_factory=dict)
    args: tuple[str, ...] = ()

    def flag(self, letter: str, default: Any = None) -> Any:
        return self.flags.get(letter, default)

    def has(self, letter: str) -> bool:
        return bool(self.flags.get(letter))


def _is_flag_token(token: str) -> bool:
    return token.startswith("-") and len(token) > 1 and token != END_OF_FLAGS


def wants_help(node: CommandNode, tokens: Sequence[str]) -> bool:
    """True when help is asked for, alone (``-h``) or inside a cluster (``-dh``).

    A letter that takes a value ends the scan of its cluster: in ``-lh`` the
    ``h`` is the value of ``-l``.
    """

    for token in tokens:
        if token == HELP_TOKEN:
            return True
        if not _is_flag_token(token) or token.startswith("--"):
            continue
        for letter in token[1:]:
            if letter == HELP_FLAG:
                return True
            definition = node.flag(letter)
            if definition is not None and definition.takes_argument:
                break
    return False


def parse_flags(node: CommandNode, tokens: Sequence[str]) -> tuple[Dict[str, str | bool], tuple[str, ...]]:
    """Split ``tokens`` into flags declared by ``node`` and positional arguments.

    Follows getopts conventions: ``-de`` sets both ``d`` and ``e``, and a flag
    that takes a value uses the rest of its token (``-lSTA-1``) or the next
    token (``-l STA-1``). Flags and positionals may interleave; everything
    after ``--`` is positional.
    """

    flags: Dict[str, str | bool] = {}
    args: list[str] = []
    index = 0
    while index < len(tokens):
        token = tokens[index]
        index += 1
        if token == END_OF_FLAGS:
            args.extend(tokens[index:])
            break
        if not _is_flag_token(token):
            args.append(token)
            continue
        if token.startswith("--"):
            raise FlagError(f"unknown flag {token}")
        letters = token[1:]
        for offset, letter in enumerate(letters):
            definition = node.flag(letter)
            if definition is None:
                raise FlagError(f"unknown flag -{letter}")
            if not definition.takes_argument:
                flags[letter] = True
                continue
            attached = letters[offset + 1 :]
            if attached:
                flags[letter] = attached
            elif index < len(tokens):
                flags[letter] = tokens[index]
                index += 1
            else:
                raise FlagError(f"flag -{letter} requires a value ({definition.metavar})")
            break
    return flags, tuple(args)


class Dispatcher:
    def __init__(
        self,
        root: CommandNode,
        context: Any,
        console: Console | None = None,
        *,
        on_complete: Callable[[tuple[str, ...], int], None] | None = None,
    ) -> None:
        self._root = root
        self._context = context
        self._console = console or Console()
        self._on_complete = on_complete

    def resolve(self, argv: Sequence[str]) -> tuple[CommandNode, tuple[str, ...], list[str]]:
        """Descend through known subcommands; return the node, its path and leftover tokens."""

        node = self._root
        path: tuple[str, ...] = ()
        remaining = list(argv)
        while remaining and node.children:
            child = node.child(remaining[0])
            if child is None:
                break
            node = child
            path += (remaining.pop(0),)
        return node, path, remaining

    def _help(self, node: CommandNode, path: tuple[str, ...]) -> None:
        self._console.out(node.render_help(path))

    def dispatch(self, argv: Sequence[str]) -> int:
        node, path, remaining = self.resolve(argv)
        exit_code = self._dispatch(node, path, remaining)
        if self._on_complete is not None:
            self._on_complete(path, exit_code)
        return exit_code

    def _dispatch(self, node: CommandNode, path: tuple[str, ...], remaining: list[str]) -> int:
        if wants_help(node, remaining):
            self._help(node, path)
            return 0
        if not node.is_leaf:
            if not remaining:
                self._help(node, path)
                return 0
            self._console.err(compose("@b@red[[error:]] unknown subcommand '", Literal(remaining[0]), "'"))
            self._help(node, path)
            return 1

        try:
            flags, args = parse_flags(node, remaining)
        except FlagError as exc:
            self._report(exc)
            self._help(node, path)
            return exc.exit_code

        invocation = ParsedInvocation(path=path, flags=flags, args=args)
        try:
            result = node.handler(invocation, self._context)
        except UserInputError as exc:
            self._report(exc)
            self._help(node, path)
            return exc.exit_code
        except PrflowError as exc:
            self._report(exc)
            return exc.exit_code
        return 0 if result is None else int(result)

    def _report(self, exc: PrflowError) -> None:
        console = self._console
        if isinstance(exc, NotFoundError):
            if exc.expected:
                console.echo(str(exc))
            else:
                console.err(compose("@b@red[[error:]] ", Literal(str(exc))))
            return
        if isinstance(exc, ExternalToolError):
            console.err(compose("@b@red[[error:]] ", Literal(f"{exc.tool} failed")))
            if exc.diagnostic:
                console.echo(exc.diagnostic, error=True)
            return
        console.err(compose("@b@red[[error:]] ", Literal(str(exc))))
        if isinstance(exc, PreconditionError) and exc.detail:
            console.echo(exc.detail, error=True)
        if exc.hint:
            console.err(compose("@yellow[[hint:]] ", Literal(exc.hint)))
