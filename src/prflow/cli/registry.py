"""Static command tree: groups, leaf commands, flags and their help."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Callable, Iterable, Iterator, Mapping, Sequence

if TYPE_CHECKING:
    from prflow.cli.dispatcher import ParsedInvocation

HELP_FLAG = "h"
PROGRAM = "prflow"

Handler = Callable[["ParsedInvocation", Any], "int | None"]
HelpRenderer = Callable[["CommandNode", Sequence[str]], str]


@dataclass(frozen=True)
class FlagDef:
    letter: str
    takes_argument: bool = False
    description: str = ""
    metavar: str = "VALUE"

    def __post_init__(self) -> None:
        if len(self.letter) != 1 or not self.letter.isalnum():
            raise ValueError(f"flag letter must be a single alphanumeric character, got {self.letter!r}")
        if self.letter == HELP_FLAG:
            raise ValueError("-h is reserved for help")

    @property
    def spelling(self) -> str:
        if self.takes_argument:
            return f"-{self.letter} {self.metavar}"
        return f"-{self.letter}"


@dataclass(frozen=True, eq=False)
class CommandNode:
    """One level of the command tree.

    Groups carry ``children``; leaves carry a ``handler`` and ``flags``.
    """

    name: str
    summary: str = ""
    children: Mapping[str, "CommandNode"] = field(default_factory=dict)
    flags: tuple[FlagDef, ...] = ()
    handler: Handler | None = None
    usage: str = ""
    details: str = ""
    help_renderer: HelpRenderer | None = None

    def __post_init__(self) -> None:
        if self.children and self.handler is not None:
            raise ValueError(f"command {self.name!r} cannot have both subcommands and a handler")
        if not self.children and self.handler is None:
            raise ValueError(f"command {self.name!r} needs subcommands or a handler")
        if self.children and self.flags:
            raise ValueError(f"command group {self.name!r} cannot declare flags")
        letters = [flag.letter for flag in self.flags]
        if len(letters) != len(set(letters)):
            raise ValueError(f"duplicate flag letters in command {self.name!r}")
        for key, child in self.children.items():
            if key != child.name:
                raise ValueError(f"child {child.name!r} registered under {key!r}")
        object.__setattr__(self, "children", MappingProxyType(dict(self.children)))

    @property
    def is_leaf(self) -> bool:
        return self.handler is not None

    def child(self, name: str) -> "CommandNode | None":
        return self.children.get(name)

    def flag(self, letter: str) -> FlagDef | None:
        for flag in self.flags:
            if flag.letter == letter:
                return flag
        return None

    def render_help(self, path: Sequence[str]) -> str:
        renderer = self.help_renderer or command_help
        return renderer(self, path)


def group(name: str, summary: str, children: Iterable[CommandNode], **kwargs: Any) -> CommandNode:
    return CommandNode(name=name, summary=summary, children={child.name: child for child in children}, **kwargs)


def command(name: str, summary: str, handler: Handler, *, flags: Sequence[FlagDef] = (), **kwargs: Any) -> CommandNode:
    return CommandNode(name=name, summary=summary, handler=handler, flags=tuple(flags), **kwargs)


def walk(root: CommandNode, path: tuple[str, ...] = ()) -> Iterator[tuple[tuple[str, ...], CommandNode]]:
    """Yield ``(path, node)`` for the root and every descendant, depth first."""

    yield path, root
    for name, child in root.children.items():
        yield from walk(child, path + (name,))


def _table(rows: Sequence[tuple[str, str]]) -> list[str]:
    width = max(len(left) for left, _ in rows)
    return [f"  @cyan[[{left}]]{' ' * (width - len(left) + 2)}{right}" for left, right in rows]


def command_help(node: CommandNode, path: Sequence[str]) -> str:
    """Default help: usage line, summary, subcommands or flags."""

    invocation = " ".join((PROGRAM, *path))
    if node.children:
        usage = node.usage or "<command> [flags]"
    else:
        usage = node.usage or ("[flags]" if node.flags else "")
    lines = [f"@b[[Usage:]] {invocation} {usage}".rstrip()]
    if node.summary:
        lines.extend(["", node.summary])
    if node.details:
        lines.extend(["", node.details.strip("\n")])
    if node.children:
        lines.extend(["", "@b[[Commands:]]"])
        lines.extend(_table([(child.name, child.summary) for child in node.children.values()]))
    flag_rows = [(flag.spelling, flag.description) for flag in node.flags]
    flag_rows.append((f"-{HELP_FLAG}", "Show this help"))
    lines.extend(["", "@b[[Flags:]]"])
    lines.extend(_table(flag_rows))
    if node.children:
        lines.extend(["", f"Run '{invocation} <command> -h' for details on a command."])
    return "\n".join(lines)
