"""Row assignment for rendering process records on trace rows."""

import heapq
from collections.abc import Iterable

from proctimeline.logging_config import get_logger
from proctimeline.models import ProcessRecord, RenderMode
from proctimeline.registry import CommandRegistry

logger = get_logger("layout")


def _start_order(record: ProcessRecord) -> tuple:
    return (record.start_ns, record.key)


def _flame_order(record: ProcessRecord) -> tuple:
    return (record.start_ns, record.duration_ns, record.key)


def assign_flat(records: list[ProcessRecord]) -> int:
    """Put every record on row 0; the viewer nests overlaps by time."""
    for record in records:
        record.render_row = 0
    return 1 if records else 0


def assign_command(records: list[ProcessRecord], commands: CommandRegistry) -> int:
    """Row is the command id; records sharing a name share a row."""
    rows: set[int] = set()
    for record in records:
        record.render_row = commands.register(record.name)
        rows.add(record.render_row)
    return len(rows)


def assign_cascade(records: list[ProcessRecord]) -> int:
    """One row per record, ordered by start time then key."""
    for row, record in enumerate(sorted(records, key=_start_order)):
        record.render_row = row
    return len(records)


def assign_flame(records: list[ProcessRecord]) -> int:
    """
    Pack intervals onto the fewest rows so that no row holds two
    overlapping [start, end) ranges.

    Records are taken by start time (then shorter duration, then key) and
    each goes onto the lowest-numbered row whose last interval has already
    ended. Rows that ended are kept in a min-heap of free row numbers, which
    gives the same answer as scanning rows from 0 upward.
    """
    busy: list[tuple[int, int]] = []  # (end_ns, row)
    free: list[int] = []
    row_count = 0

    for record in sorted(records, key=_flame_order):
        while busy and busy[0][0] <= record.start_ns:
            _, row = heapq.heappop(busy)
            heapq.heappush(free, row)

        if free:
            row = heapq.heappop(free)
        else:
            row = row_count
            row_count += 1

        record.render_row = row
        heapq.heappush(busy, (record.end_ns, row))

    return row_count


def assign_rows(
    records: Iterable[ProcessRecord],
    mode: RenderMode,
    commands: CommandRegistry,
) -> int:
    """
    Set render_row on every record for the given mode.

    Records missing a bound, or ending before they start, are excluded and
    left with render_row = None. Returns the number of distinct rows used.
    """
    eligible: list[ProcessRecord] = []
    for record in records:
        record.render_row = None
        if record.is_renderable:
            eligible.append(record)
        else:
            logger.debug("Excluding %s from row assignment", record.key)

    match mode:
        case RenderMode.FLAT:
            row_count = assign_flat(eligible)
        case RenderMode.COMMAND:
            row_count = assign_command(eligible, commands)
        case RenderMode.CASCADE:
            row_count = assign_cascade(eligible)
        case RenderMode.FLAME:
            row_count = assign_flame(eligible)

    logger.debug("Assigned %d records to %d rows (%s)", len(eligible), row_count, mode.value)
    return row_count
