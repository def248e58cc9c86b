"""Builds Chrome trace-event documents from a process registry."""

from typing import Any

from proctimeline.layout import assign_rows
from proctimeline.logging_config import get_logger
from proctimeline.models import ProcessRecord, RenderMode
from proctimeline.registry import CommandRegistry, ProcessRegistry

logger = get_logger("trace")

TraceEvent = dict[str, Any]
Document = list[TraceEvent]

NS_PER_US = 1000


def ns_to_us(time_ns: int) -> int:
    """Truncate a nanosecond timestamp to whole microseconds."""
    return time_ns // NS_PER_US


def interval_us(record: ProcessRecord) -> tuple[int, int]:
    """
    Return (ts, dur) in microseconds for a complete record.

    Both values come from the truncated bounds, so ts + dur always equals
    the truncated end time.
    """
    start_us = ns_to_us(record.start_ns)
    end_us = ns_to_us(record.end_ns)
    return start_us, end_us - start_us


class TraceDocumentBuilder:
    """Lays out a registry for a render mode and emits "X" trace events."""

    def __init__(
        self,
        registry: ProcessRegistry,
        commands: CommandRegistry,
        label_rows: bool = False,
    ) -> None:
        self._registry = registry
        self._commands = commands
        self._label_rows = label_rows
        self.row_count = 0
        self.rendered = 0
        self.dropped = 0

    def build(self, mode: RenderMode) -> Document:
        """Assign rows for mode and return the trace events in key order."""
        self.row_count = assign_rows(self._registry, mode, self._commands)
        self.rendered = 0
        self.dropped = 0

        events: Document = []
        for record in self._registry:
            if record.is_link_only:
                # Seen only as the parent side of a fork.
                logger.debug("No lifecycle events for parent %s, not rendered", record.key)
                continue
            if not self._check_renderable(record):
                self.dropped += 1
                continue
            events.append(self._complete_event(record, mode))
            self.rendered += 1

        if self._label_rows:
            events = self._row_labels(mode) + events
        return events

    def _check_renderable(self, record: ProcessRecord) -> bool:
        if record.start_ns is None:
            logger.error("Missing start timestamp for %s (%s)", record.display_name, record.key)
            return False
        if record.end_ns is None:
            logger.error("Missing end timestamp for %s (%s)", record.display_name, record.key)
            return False
        if record.end_ns < record.start_ns:
            logger.error(
                "End timestamp precedes start for %s (%s): %d < %d",
                record.display_name,
                record.key,
                record.end_ns,
                record.start_ns,
            )
            return False
        return True

    def _complete_event(self, record: ProcessRecord, mode: RenderMode) -> TraceEvent:
        """
        The "X" event for one record.

        pid is always the render row. FLAT and COMMAND share one track per
        row, so tid is the row too; FLAME and CASCADE keep the real tid.
        """
        ts, dur = interval_us(record)
        tid = record.render_row
        if mode in (RenderMode.FLAME, RenderMode.CASCADE):
            tid = record.key.tid
        args: dict[str, Any] = {"pid": record.key.pid, "tid": record.key.tid}
        if record.parent is not None:
            args["parent"] = str(record.parent)
        return {
            "ph": "X",  # Complete event.
            "name": record.display_name,
            "pid": record.render_row,
            "tid": tid,
            "ts": ts,
            "dur": dur,
            "args": args,
        }

    def _row_labels(self, mode: RenderMode) -> Document:
        """process_name metadata events, one per row in use."""
        rows = sorted({record.render_row for record in self._registry if record.render_row is not None})
        names = self._commands.names()
        labels: Document = []
        for row in rows:
            if mode is RenderMode.COMMAND and row < len(names):
                label = names[row] or "<unnamed>"
            else:
                label = f"row {row}"
            labels.append({"ph": "M", "name": "process_name", "pid": row, "args": {"name": label}})
        return labels


def build_document(
    registry: ProcessRegistry,
    commands: CommandRegistry,
    mode: RenderMode,
    label_rows: bool = False,
) -> Document:
    """Shortcut for TraceDocumentBuilder(...).build(mode)."""
    return TraceDocumentBuilder(registry, commands, label_rows=label_rows).build(mode)
