"""One-shot conversion from profiler events to a trace document."""

from collections.abc import Iterable
from dataclasses import dataclass

from proctimeline.ingest import EventIngestor, IngestStats
from proctimeline.logging_config import get_logger
from proctimeline.models import ProfilerEvent, RenderMode
from proctimeline.reader import sort_events
from proctimeline.registry import CommandRegistry, ProcessRegistry
from proctimeline.trace import Document, TraceDocumentBuilder

logger = get_logger("converter")


@dataclass(slots=True)
class ConversionConfig:
    """Options for a conversion run."""

    render_mode: RenderMode = RenderMode.FLAT
    sort_events: bool = True  # Order events by timestamp before ingesting
    label_rows: bool = False  # Prefix process_name metadata events


@dataclass(slots=True)
class ConversionResult:
    """Everything produced by one conversion run."""

    document: Document
    registry: ProcessRegistry
    commands: CommandRegistry
    stats: IngestStats
    mode: RenderMode
    row_count: int = 0
    rendered: int = 0
    dropped: int = 0
    label_rows: bool = False

    def rebuild(self, mode: RenderMode) -> Document:
        """Lay the same registry out again for another mode."""
        builder = TraceDocumentBuilder(self.registry, self.commands, label_rows=self.label_rows)
        self.document = builder.build(mode)
        self.mode = mode
        self.row_count = builder.row_count
        self.rendered = builder.rendered
        self.dropped = builder.dropped
        return self.document


def convert(events: Iterable[ProfilerEvent], config: ConversionConfig | None = None) -> ConversionResult:
    """Ingest events into a fresh registry and build the trace document."""
    config = config or ConversionConfig()
    events = list(events)
    if config.sort_events:
        events = sort_events(events)

    registry = ProcessRegistry()
    commands = CommandRegistry()
    stats = EventIngestor(registry, commands).ingest(events)

    builder = TraceDocumentBuilder(registry, commands, label_rows=config.label_rows)
    document = builder.build(config.render_mode)

    logger.info(
        "Converted %d events into %d records: %d rendered on %d rows (%s), %d dropped",
        stats.total,
        len(registry),
        builder.rendered,
        builder.row_count,
        config.render_mode.value,
        builder.dropped,
    )
    return ConversionResult(
        document=document,
        registry=registry,
        commands=commands,
        stats=stats,
        mode=config.render_mode,
        row_count=builder.row_count,
        rendered=builder.rendered,
        dropped=builder.dropped,
        label_rows=config.label_rows,
    )
