"""Minimal jq-style field selection over decoded JSON documents."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Iterable, List

from prflow.domain.errors import UserInputError

_SEGMENT_RE = re.compile(
    r"""
    \.(?P<key>[A-Za-z_][A-Za-z0-9_]*)
    | \."(?P<quoted>[^"]*)"
    | \[(?P<index>-?\d+)\]
    | \[(?P<iterate>)\]
    | \.(?=\[)
    """,
    re.VERBOSE,
)


@dataclass(frozen=True)
class Step:
    kind: str  # "key" | "index" | "iterate"
    value: Any = None


def parse(expression: str) -> List[Step]:
    expr = expression.strip()
    if not expr.startswith("."):
        raise UserInputError(f"invalid query {expression!r}: must start with '.'", hint="Example: .head.ref")
    if expr == ".":
        return []
    steps: list[Step] = []
    position = 0
    while position < len(expr):
        match = _SEGMENT_RE.match(expr, position)
        if match is None or match.end() == position:
            raise UserInputError(f"invalid query {expression!r} at offset {position}", hint="Example: .head.ref")
        if match.group("key") is not None:
            steps.append(Step("key", match.group("key")))
        elif match.group("quoted") is not None:
            steps.append(Step("key", match.group("quoted")))
        elif match.group("index") is not None:
            steps.append(Step("index", int(match.group("index"))))
        elif match.group("iterate") is not None:
            steps.append(Step("iterate"))
        position = match.end()
    return steps


def _apply(step: Step, value: Any, expression: str) -> Iterable[Any]:
    if value is None:
        if step.kind == "iterate":
            raise UserInputError(f"cannot iterate over null in {expression!r}")
        return [None]
    if step.kind == "key":
        if not isinstance(value, dict):
            raise UserInputError(f"cannot index {type(value).__name__} with {step.value!r} in {expression!r}")
        return [value.get(step.value)]
    if step.kind == "index":
        if not isinstance(value, list):
            raise UserInputError(f"cannot index {type(value).__name__} with a number in {expression!r}")
        try:
            return [value[step.value]]
        except IndexError:
            return [None]
    if isinstance(value, list):
        return list(value)
    if isinstance(value, dict):
        return list(value.values())
    raise UserInputError(f"cannot iterate over {type(value).__name__} in {expression!r}")


def query(document: Any, expression: str) -> list[Any]:
    """Evaluate ``expression`` against ``document`` and return every result."""

    results = [document]
    for step in parse(expression):
        results = [item for value in results for item in _apply(step, value, expression)]
    return results


def format_result(value: Any) -> str:
    """Render one query result the way ``jq -r`` prints it."""

    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)
