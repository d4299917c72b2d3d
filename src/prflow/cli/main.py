#!/usr/bin/env python3
"""Entry point for the prflow CLI."""

from __future__ import annotations

import sys
from typing import Sequence

from prflow.cli.commands import REGISTRY
from prflow.cli.console import Console
from prflow.cli.context import CommandContext
from prflow.cli.dispatcher import Dispatcher
from prflow.domain.markup import Literal, compose
from prflow.settings import RuntimeSettings, SettingsError, load_settings
from prflow.utils.telemetry import record_event


def _build_context(settings: RuntimeSettings | None, console: Console) -> CommandContext | None:
    try:
        runtime = settings or load_settings()
    except SettingsError as exc:
        console.err(compose("@b@red[[error:]] ", Literal(str(exc))))
        return None
    return CommandContext(runtime, console)


def main(argv: Sequence[str] | None = None, *, settings: RuntimeSettings | None = None, context: CommandContext | None = None) -> int:
    args = list(sys.argv[1:] if argv is None else argv)
    if context is None:
        context = _build_context(settings, Console())
        if context is None:
            return 1

    context.gate.maybe_run(command=args[0] if args else None)

    def _record(path: tuple[str, ...], exit_code: int) -> None:
        record_event(context.settings, "command", {"path": " ".join(path), "exit_code": exit_code})

    dispatcher = Dispatcher(REGISTRY, context, context.console, on_complete=_record)
    return dispatcher.dispatch(args)


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
