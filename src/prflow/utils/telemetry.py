"""Local structured event log.

Every command and every maintenance run appends one JSON line to
``<log_dir>/telemetry.jsonl``. Records are checked against the packaged
``telemetry.schema.json`` before they are written. ``PRFLOW_TELEMETRY=0``
turns recording off.
"""

from __future__ import annotations

import json
import os
import sys
import time
from collections import Counter
from pathlib import Path
from typing import Any, Iterable, Iterator

import jsonschema
from jsonschema.exceptions import best_match

from prflow.resources import load_json_resource
from prflow.settings import RuntimeSettings

LOG_FILENAME = "telemetry.jsonl"
SCHEMA_RESOURCE = "telemetry.schema.json"

_OFF = {"0", "false", "no", "off"}
_validator: jsonschema.Draft202012Validator | None = None


class TelemetryRecordError(ValueError):
    """A record does not match the telemetry schema."""


def telemetry_enabled() -> bool:
    return os.getenv("PRFLOW_TELEMETRY", "1").strip().lower() not in _OFF


def log_path(settings: RuntimeSettings) -> Path:
    return settings.log_dir / LOG_FILENAME


def _schema_validator() -> jsonschema.Draft202012Validator:
    global _validator
    if _validator is None:
        _validator = jsonschema.Draft202012Validator(load_json_resource(SCHEMA_RESOURCE))
    return _validator


def build_record(
    event: str,
    payload: dict[str, Any] | None = None,
    *,
    level: str = "info",
    status: str | None = None,
    component: str | None = None,
    duration_ms: float | None = None,
) -> dict[str, Any]:
    """Assemble a record and validate it; raises :class:`TelemetryRecordError`."""

    record: dict[str, Any] = {"ts": time.time(), "event": event, "payload": payload or {}, "level": level}
    optional = {"status": status, "component": component, "durationMs": duration_ms}
    record.update({key: value for key, value in optional.items() if value is not None})
    error = best_match(_schema_validator().iter_errors(record))
    if error is not None:
        raise TelemetryRecordError(f"invalid telemetry record at {error.json_path}: {error.message}")
    return record


def record_event(settings: RuntimeSettings, event: str, payload: dict[str, Any] | None = None, **fields: Any) -> None:
    """Append one event; a no-op while telemetry is off.

    An unwritable log only produces a warning on stderr: the command that
    triggered the event has already done its work.
    """

    if not telemetry_enabled():
        return
    line = json.dumps(build_record(event, payload, **fields), ensure_ascii=False)
    path = log_path(settings)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("a", encoding="utf-8") as fh:
            fh.write(line + "\n")
    except OSError as exc:
        sys.stderr.write(f"prflow: could not write telemetry to {path}: {exc}\n")


def iter_events(settings: RuntimeSettings) -> Iterator[dict[str, Any]]:
    path = log_path(settings)
    if not path.exists():
        return
    with path.open("r", encoding="utf-8") as fh:
        for raw in fh:
            if not raw.strip():
                continue
            try:
                yield json.loads(raw)
            except json.JSONDecodeError:
                # partial line from an interrupted write
                continue


def _status_of(event: dict[str, Any]) -> str:
    payload = event.get("payload")
    nested = payload.get("status") if isinstance(payload, dict) else None
    return str(event.get("status") or nested or "unknown")


def summarize(events: Iterable[dict[str, Any]]) -> dict[str, Any]:
    by_event: Counter[str] = Counter()
    by_status: Counter[str] = Counter()
    for event in events:
        by_event[str(event.get("event", "unknown"))] += 1
        by_status[_status_of(event)] += 1
    return {"total": sum(by_event.values()), "by_event": dict(by_event), "by_status": dict(by_status)}


def clear(settings: RuntimeSettings) -> bool:
    """Delete the log; returns whether there was anything to delete."""

    path = log_path(settings)
    if not path.exists():
        return False
    path.unlink()
    return True
