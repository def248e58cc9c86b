"""Tests for event file loading."""

import json

import pytest

from proctimeline.models import CommEvent, ExitEvent, ForkEvent, UnknownEvent
from proctimeline.reader import (
    EventReadError,
    ProcTimelineError,
    load_events,
    parse_event,
    parse_events,
    sort_events,
)


def test_parse_comm():
    """Test a comm object becomes a CommEvent."""
    event = parse_event({"type": "comm", "pid": 1, "tid": 2, "comm": "init", "time_ns": 100})
    assert event == CommEvent(pid=1, tid=2, comm="init", sample_time_ns=100)


def test_parse_comm_aliases():
    """Test rename/name and per-kind time field spellings."""
    event = parse_event({"type": "RENAME", "pid": 1, "tid": 1, "name": "sh", "sample_time_ns": 5})
    assert event == CommEvent(1, 1, "sh", 5)


def test_parse_fork_with_parent():
    """Test fork objects keep optional parent ids."""
    event = parse_event({"type": "fork", "pid": 2, "tid": 2, "ppid": 1, "ptid": 1, "time_ns": 1000})
    assert event == ForkEvent(pid=2, tid=2, fork_time_ns=1000, ppid=1, ptid=1)

    bare = parse_event({"type": "fork", "pid": 2, "tid": 2, "fork_time_ns": 1000})
    assert bare.ppid is None


def test_parse_exit():
    """Test an exit object becomes an ExitEvent."""
    event = parse_event({"type": "exit", "pid": 2, "tid": 2, "time_ns": 2000})
    assert event == ExitEvent(2, 2, 2000)


def test_parse_unknown_type():
    """Test unrecognized types are kept as UnknownEvent."""
    assert parse_event({"type": "mmap", "time_ns": 7}) == UnknownEvent("mmap", 7)
    assert parse_event({"type": "sample"}) == UnknownEvent("sample", None)


@pytest.mark.parametrize(
    "obj",
    [
        [1, 2],
        {"pid": 1},
        {"type": "comm", "pid": 1, "tid": 1, "time_ns": 1},
        {"type": "fork", "pid": 1, "time_ns": 1},
        {"type": "exit", "pid": 1, "tid": 1},
        {"type": "exit", "pid": -1, "tid": 1, "time_ns": 1},
        {"type": "exit", "pid": "1", "tid": 1, "time_ns": 1},
        {"type": "exit", "pid": True, "tid": 1, "time_ns": 1},
    ],
)
def test_parse_invalid(obj):
    """Test malformed event objects raise EventReadError."""
    with pytest.raises(EventReadError):
        parse_event(obj)


def test_parse_json_lines():
    """Test JSON Lines input, ignoring blank lines."""
    text = "\n".join([
        json.dumps({"type": "fork", "pid": 2, "tid": 2, "time_ns": 1000}),
        "",
        json.dumps({"type": "exit", "pid": 2, "tid": 2, "time_ns": 2000}),
    ])
    assert parse_events(text) == [ForkEvent(2, 2, 1000), ExitEvent(2, 2, 2000)]


def test_parse_json_array():
    """Test a JSON array document."""
    text = json.dumps([{"type": "exit", "pid": 1, "tid": 1, "time_ns": 5}])
    assert parse_events(text) == [ExitEvent(1, 1, 5)]


def test_parse_bad_json_reports_line():
    """Test a syntax error names the offending line."""
    text = '{"type": "exit", "pid": 1, "tid": 1, "time_ns": 5}\n{oops\n'
    with pytest.raises(EventReadError, match=r"events:2"):
        parse_events(text, source="events")


def test_load_events(tmp_path):
    """Test loading from a file."""
    path = tmp_path / "events.jsonl"
    path.write_text(json.dumps({"type": "comm", "pid": 1, "tid": 1, "comm": "init", "time_ns": 1}) + "\n")

    assert load_events(path) == [CommEvent(1, 1, "init", 1)]


def test_load_missing_file(tmp_path):
    """Test a missing file raises EventReadError."""
    with pytest.raises(EventReadError):
        load_events(tmp_path / "nope.jsonl")


def test_error_hierarchy():
    """Test EventReadError is a ProcTimelineError."""
    assert issubclass(EventReadError, ProcTimelineError)


def test_sort_events_stable():
    """Test sorting by time keeps file order for equal timestamps."""
    fork = ForkEvent(2, 2, 1000)
    comm = CommEvent(2, 2, "shell", 1000)
    early_exit = ExitEvent(1, 1, 500)
    unknown = UnknownEvent("mmap")

    assert sort_events([fork, comm, early_exit, unknown]) == [unknown, early_exit, fork, comm]
