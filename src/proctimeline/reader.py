"""
Loads profiler lifecycle events from JSON or JSON Lines files.

Each event is an object with a "type" field:

    {"type": "comm", "pid": 1, "tid": 1, "comm": "init", "time_ns": 100000}
    {"type": "fork", "pid": 2, "tid": 2, "ppid": 1, "ptid": 1, "time_ns": 1000}
    {"type": "exit", "pid": 2, "tid": 2, "time_ns": 2000}

Any other type is kept as an UnknownEvent so the ingestor can skip it.
"""

import json
from pathlib import Path
from typing import Any

from proctimeline.logging_config import get_logger
from proctimeline.models import CommEvent, ExitEvent, ForkEvent, ProfilerEvent, UnknownEvent

logger = get_logger("reader")

COMM_TYPES = ("comm", "rename", "perf_record_comm")
FORK_TYPES = ("fork", "perf_record_fork")
EXIT_TYPES = ("exit", "perf_record_exit")

# Accepted per-kind spellings of the timestamp field, after "time_ns".
TIME_FIELDS = {
    "comm": ("sample_time_ns",),
    "fork": ("fork_time_ns",),
    "exit": ("exit_time_ns", "fork_time_ns"),
}


class ProcTimelineError(Exception):
    """Base class for proctimeline errors."""


class EventReadError(ProcTimelineError):
    """The event source could not be read or parsed."""


def _int_field(obj: dict[str, Any], names: tuple[str, ...], where: str, required: bool = True) -> int | None:
    for name in names:
        if name in obj:
            value = obj[name]
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise EventReadError(f"{where}: field {name!r} must be a non-negative integer, got {value!r}")
            return value
    if required:
        raise EventReadError(f"{where}: missing field {names[0]!r}")
    return None


def parse_event(obj: Any, where: str = "event") -> ProfilerEvent:
    """Convert one decoded JSON object into a ProfilerEvent."""
    if not isinstance(obj, dict):
        raise EventReadError(f"{where}: expected an object, got {type(obj).__name__}")

    kind = obj.get("type")
    if not isinstance(kind, str):
        raise EventReadError(f"{where}: missing string field 'type'")
    kind = kind.lower()

    if kind in COMM_TYPES:
        comm = obj.get("comm", obj.get("name"))
        if not isinstance(comm, str):
            raise EventReadError(f"{where}: missing string field 'comm'")
        return CommEvent(
            pid=_int_field(obj, ("pid",), where),
            tid=_int_field(obj, ("tid",), where),
            comm=comm,
            sample_time_ns=_int_field(obj, ("time_ns",) + TIME_FIELDS["comm"], where),
        )
    if kind in FORK_TYPES:
        return ForkEvent(
            pid=_int_field(obj, ("pid",), where),
            tid=_int_field(obj, ("tid",), where),
            fork_time_ns=_int_field(obj, ("time_ns",) + TIME_FIELDS["fork"], where),
            ppid=_int_field(obj, ("ppid",), where, required=False),
            ptid=_int_field(obj, ("ptid",), where, required=False),
        )
    if kind in EXIT_TYPES:
        return ExitEvent(
            pid=_int_field(obj, ("pid",), where),
            tid=_int_field(obj, ("tid",), where),
            exit_time_ns=_int_field(obj, ("time_ns",) + TIME_FIELDS["exit"], where),
        )
    time_ns = obj.get("time_ns")
    if isinstance(time_ns, bool) or not isinstance(time_ns, int):
        time_ns = None
    return UnknownEvent(kind=kind, time_ns=time_ns)


def parse_events(text: str, source: str = "<string>") -> list[ProfilerEvent]:
    """Parse a JSON array or JSON Lines document of events."""
    stripped = text.lstrip()
    if stripped.startswith("["):
        try:
            decoded = json.loads(text)
        except json.JSONDecodeError as e:
            raise EventReadError(f"{source}: invalid JSON: {e}") from e
        return [parse_event(obj, f"{source}[{i}]") for i, obj in enumerate(decoded)]

    events: list[ProfilerEvent] = []
    for lineno, line in enumerate(text.splitlines(), start=1):
        line = line.strip()
        if not line:
            continue
        where = f"{source}:{lineno}"
        try:
            obj = json.loads(line)
        except json.JSONDecodeError as e:
            raise EventReadError(f"{where}: invalid JSON: {e}") from e
        events.append(parse_event(obj, where))
    return events


def load_events(path: str | Path) -> list[ProfilerEvent]:
    """Read every event from the file at path."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise EventReadError(f"Could not read {path}: {e}") from e
    events = parse_events(text, source=str(path))
    logger.info("Read %d events from %s", len(events), path)
    return events


def _sort_key(event: ProfilerEvent) -> int:
    time_ns = event.time_ns
    return time_ns if time_ns is not None else 0


def sort_events(events: list[ProfilerEvent]) -> list[ProfilerEvent]:
    """Stable sort by timestamp; events without one sort first."""
    return sorted(events, key=_sort_key)
