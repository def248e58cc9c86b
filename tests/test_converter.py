"""End-to-end conversion scenarios."""

import logging

from proctimeline.converter import ConversionConfig, convert
from proctimeline.models import CommEvent, ExitEvent, ForkEvent, RenderMode, UnknownEvent


def shell_and_child(child_name="worker"):
    """A shell (2/2) and an overlapping child (3/3)."""
    return [
        ForkEvent(pid=2, tid=2, fork_time_ns=1_000_000),
        CommEvent(pid=2, tid=2, comm="shell", sample_time_ns=1_000_000),
        ForkEvent(pid=3, tid=3, fork_time_ns=1_200_000, ppid=2, ptid=2),
        CommEvent(pid=3, tid=3, comm=child_name, sample_time_ns=1_200_000),
        ExitEvent(pid=3, tid=3, exit_time_ns=1_800_000),
        ExitEvent(pid=2, tid=2, exit_time_ns=2_000_000),
    ]


def rows_by_pid(result):
    return {e["args"]["pid"]: e["pid"] for e in result.document}


def test_rename_then_exit():
    """Test a process without a fork takes its start from the rename."""
    events = [
        CommEvent(pid=1, tid=1, comm="init", sample_time_ns=100_000),
        ExitEvent(pid=1, tid=1, exit_time_ns=500_000),
    ]
    result = convert(events)

    assert len(result.document) == 1
    event = result.document[0]
    assert (event["name"], event["ts"], event["dur"]) == ("init", 100, 400)


def test_flame_splits_overlapping():
    """Test FLAME puts overlapping processes on different rows."""
    result = convert(shell_and_child(), ConversionConfig(render_mode=RenderMode.FLAME))

    rows = rows_by_pid(result)
    assert rows[2] != rows[3]
    assert result.row_count == 2


def test_cascade_splits_overlapping():
    """Test CASCADE puts every process on its own row."""
    result = convert(shell_and_child(), ConversionConfig(render_mode=RenderMode.CASCADE))

    assert rows_by_pid(result) == {2: 0, 3: 1}


def test_command_rows_follow_names():
    """Test COMMAND shares a row only between identical names."""
    different = convert(shell_and_child("worker"), ConversionConfig(render_mode=RenderMode.COMMAND))
    same = convert(shell_and_child("shell"), ConversionConfig(render_mode=RenderMode.COMMAND))

    assert rows_by_pid(different)[2] != rows_by_pid(different)[3]
    assert rows_by_pid(same)[2] == rows_by_pid(same)[3]


def test_flame_packs_sequential():
    """Test non-overlapping processes share a FLAME row."""
    events = [
        ForkEvent(1, 1, 0),
        ExitEvent(1, 1, 100_000),
        ForkEvent(2, 2, 200_000),
        ExitEvent(2, 2, 300_000),
    ]
    result = convert(events, ConversionConfig(render_mode=RenderMode.FLAME))

    assert rows_by_pid(result) == {1: 0, 2: 0}


def test_incomplete_never_rendered():
    """Test records missing a bound are dropped and counted."""
    events = [
        CommEvent(1, 1, "running", 0),
        ExitEvent(2, 2, 100),
        ForkEvent(3, 3, 10),
        ExitEvent(3, 3, 20_000),
    ]
    result = convert(events)

    assert [e["args"]["pid"] for e in result.document] == [3]
    assert result.dropped == 2
    assert result.rendered == 1


def test_sort_events_option():
    """Test events are applied in time order unless sorting is disabled."""
    events = [
        ForkEvent(5, 5, 5_000),
        ExitEvent(5, 5, 9_000),
        ForkEvent(5, 5, 1_000),
    ]
    sorted_result = convert(events)
    raw_result = convert(events, ConversionConfig(sort_events=False))

    assert sorted_result.registry.get((5, 5)).start_ns == 5_000
    assert raw_result.registry.get((5, 5)).start_ns == 1_000
    assert sorted_result.document[0]["ts"] == 5


def test_unknown_events_do_not_abort():
    """Test unknown events are skipped and counted."""
    events = [UnknownEvent("mmap", 0)] + shell_and_child()
    result = convert(events)

    assert result.stats.skipped["mmap"] == 1
    assert len(result.document) == 2


def test_runs_are_isolated():
    """Test each conversion uses fresh registries."""
    first = convert(shell_and_child("a"), ConversionConfig(render_mode=RenderMode.COMMAND))
    second = convert(shell_and_child("b"), ConversionConfig(render_mode=RenderMode.COMMAND))

    assert first.commands.names() == ["shell", "a"]
    assert second.commands.names() == ["shell", "b"]


def test_rebuild_changes_mode():
    """Test rebuild lays out the same registry for another mode."""
    result = convert(shell_and_child(), ConversionConfig(render_mode=RenderMode.FLAT))
    assert set(rows_by_pid(result).values()) == {0}

    result.rebuild(RenderMode.CASCADE)

    assert result.mode is RenderMode.CASCADE
    assert rows_by_pid(result) == {2: 0, 3: 1}
    assert result.row_count == 2


def test_fork_parent_without_lifecycle_not_counted(caplog):
    """Test a fork naming an unseen parent does not produce a dropped record."""
    events = [
        ForkEvent(pid=2, tid=2, fork_time_ns=1_000, ppid=1, ptid=1),
        CommEvent(pid=2, tid=2, comm="sh", sample_time_ns=1_000),
        ExitEvent(pid=2, tid=2, exit_time_ns=9_000),
    ]
    with caplog.at_level(logging.ERROR, logger="proctimeline"):
        result = convert(events)

    assert len(result.registry) == 2
    assert result.dropped == 0
    assert result.rendered == 1
    assert result.document[0]["args"]["parent"] == "1/1"
    assert caplog.text == ""
