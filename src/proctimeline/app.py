"""proctimeline - Textual timeline browser."""

from enum import Enum

from textual.app import App, ComposeResult
from textual.containers import Container
from textual.widgets import DataTable, Footer, Static

from proctimeline.converter import ConversionResult
from proctimeline.models import ProcessRecord, RenderMode


class SortKey(Enum):
    """Sort keys for the interval table."""

    START = "start"
    DURATION = "duration"
    ROW = "row"
    PID = "pid"
    NAME = "name"


def format_duration(duration_ns: int) -> str:
    """Format a nanosecond duration as a human-readable string."""
    value = float(duration_ns)
    for unit in ["ns", "us", "ms"]:
        if value < 1000:
            return f"{value:5.0f}{unit}" if unit == "ns" else f"{value:5.1f}{unit}"
        value = value / 1000
    return f"{value:5.2f}s"


class SummaryStats(Static):
    """Header widget showing record counts for the current layout."""

    DEFAULT_CSS = """
    SummaryStats {
        height: auto;
        padding: 1;
        background: $surface;
    }
    """

    def __init__(self, result: ConversionResult, *args, **kwargs) -> None:
        """Initialize SummaryStats."""
        super().__init__(*args, **kwargs)
        self._result = result

    def on_mount(self) -> None:
        """Fill in the summary once mounted."""
        self.refresh_stats()

    def refresh_stats(self) -> None:
        """Redraw from the current conversion result."""
        self.update(self.get_summary())

    def get_summary(self) -> str:
        """
        Three-line summary of the current layout.

        Shows the mode and row count, the record counts and the per-kind
        event counts from ingestion.
        """
        result = self._result
        stats = result.stats
        skipped = sum(stats.skipped.values())
        return (
            f"Mode: [b]{result.mode.value}[/b]   Rows: {result.row_count}\n"
            f"Records: {len(result.registry)}  Rendered: {result.rendered}  "
            f"Dropped: {result.dropped}\n"
            f"Events: comm {stats.comm}, fork {stats.fork}, exit {stats.exit}, skipped {skipped}"
        )


class IntervalTable(Container):
    """Container for the process interval table."""

    DEFAULT_CSS = """
    IntervalTable {
        height: 1fr;
        border: solid $primary;
    }
    """

    def __init__(self, records: list[ProcessRecord] | None = None, *args, **kwargs) -> None:
        """Initialize IntervalTable."""
        super().__init__(*args, **kwargs)
        self._records: list[ProcessRecord] = self._rendered(records or [])
        self._sort_key: SortKey = SortKey.START
        self._sort_reverse: bool = False

    @property
    def sort_key(self) -> SortKey:
        """Get current sort key."""
        return self._sort_key

    @property
    def row_keys(self) -> list[str]:
        """Table row keys in display order."""
        return [str(record.key) for record in self._sort_records(self._records)]

    def cycle_sort(self) -> SortKey:
        """Cycle to the next sort key and return it."""
        keys = list(SortKey)
        current_index = keys.index(self._sort_key)
        next_index = (current_index + 1) % len(keys)
        self._sort_key = keys[next_index]
        # Longest first for durations, ascending otherwise
        self._sort_reverse = self._sort_key is SortKey.DURATION
        self._populate()
        return self._sort_key

    def compose(self) -> ComposeResult:
        """Compose the interval table."""
        yield DataTable(id="interval-table")

    def on_mount(self) -> None:
        """Initialize the data table when mounted."""
        table = self.query_one("#interval-table", DataTable)
        table.cursor_type = "row"

        table.add_column("ROW", key="row", width=6)
        table.add_column("PID", key="pid", width=8)
        table.add_column("TID", key="tid", width=8)
        table.add_column("START(us)", key="start", width=14)
        table.add_column("DURATION", key="duration", width=10)
        table.add_column("PARENT", key="parent", width=14)
        table.add_column("Command", key="command")
        self._populate()

    def update_records(self, records: list[ProcessRecord]) -> None:
        """Replace the displayed records with the rendered ones from records."""
        self._records = self._rendered(records)
        self._populate()

    @staticmethod
    def _rendered(records: list[ProcessRecord]) -> list[ProcessRecord]:
        return [record for record in records if record.render_row is not None]

    def _sort_records(self, records: list[ProcessRecord]) -> list[ProcessRecord]:
        """Sort records based on the current sort key."""
        key_func = {
            SortKey.START: lambda r: (r.start_ns, r.key),
            SortKey.DURATION: lambda r: (r.duration_ns, r.key),
            SortKey.ROW: lambda r: (r.render_row, r.start_ns, r.key),
            SortKey.PID: lambda r: r.key,
            SortKey.NAME: lambda r: (r.display_name.lower(), r.key),
        }
        return sorted(records, key=key_func[self._sort_key], reverse=self._sort_reverse)

    def _populate(self) -> None:
        if not self.is_mounted:
            return
        table = self.query_one("#interval-table", DataTable)
        table.clear()
        for record in self._sort_records(self._records):
            table.add_row(
                str(record.render_row),
                str(record.key.pid),
                str(record.key.tid),
                str(record.start_ns // 1000),
                format_duration(record.duration_ns),
                str(record.parent) if record.parent is not None else "",
                record.display_name[:50],
                key=str(record.key),
            )


class TimelineApp(App):
    """Browse the process intervals of a conversion result."""

    TITLE = "proctimeline"
    SUB_TITLE = "Process Timeline"

    CSS = """
    Screen {
        layout: vertical;
    }

    #summary-stats {
        dock: top;
        height: auto;
        min-height: 5;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("f6", "sort", "Sort"),
        ("m", "mode", "Mode"),
    ]

    def __init__(self, result: ConversionResult) -> None:
        """Initialize the TimelineApp."""
        super().__init__()
        self._result = result

    @property
    def result(self) -> ConversionResult:
        """The conversion being browsed."""
        return self._result

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield SummaryStats(self._result, id="summary-stats")
        yield IntervalTable(list(self._result.registry))
        yield Footer()

    def _refresh_views(self) -> None:
        """Redraw the summary and the table after a relayout."""
        self.query_one("#summary-stats", SummaryStats).refresh_stats()
        self.query_one(IntervalTable).update_records(list(self._result.registry))

    def action_sort(self) -> None:
        """Cycle through sort keys."""
        new_sort_key = self.query_one(IntervalTable).cycle_sort()
        self.notify(f"Sort: {new_sort_key.value.upper()}")

    def action_mode(self) -> None:
        """Lay the timeline out again with the next render mode."""
        modes = list(RenderMode)
        next_mode = modes[(modes.index(self._result.mode) + 1) % len(modes)]
        self._result.rebuild(next_mode)
        self._refresh_views()
        self.notify(f"Mode: {next_mode.value}")
