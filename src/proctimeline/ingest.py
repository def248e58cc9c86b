"""Folds profiler lifecycle events into the process registry."""

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass, field

from proctimeline.logging_config import get_logger
from proctimeline.models import (
    CommEvent,
    ExitEvent,
    ForkEvent,
    ProcessKey,
    ProfilerEvent,
    UnknownEvent,
)
from proctimeline.registry import CommandRegistry, ProcessRegistry

logger = get_logger("ingest")


@dataclass(slots=True)
class IngestStats:
    """Counts of events seen during ingestion."""

    comm: int = 0
    fork: int = 0
    exit: int = 0
    skipped: Counter[str] = field(default_factory=Counter)

    @property
    def total(self) -> int:
        return self.comm + self.fork + self.exit + sum(self.skipped.values())


class EventIngestor:
    """
    Applies rename, fork and exit events to a ProcessRegistry.

    Events are expected in time order. A fork sets the start time
    unconditionally; a rename only fills it in when no start is known yet,
    which covers processes that were already running when capture began.
    pid/tid reuse within one capture is indistinguishable from a single
    lifetime and is not detected.
    """

    def __init__(self, registry: ProcessRegistry, commands: CommandRegistry) -> None:
        self._registry = registry
        self._commands = commands

    def ingest(self, events: Iterable[ProfilerEvent]) -> IngestStats:
        """Apply every event in order and return per-kind counts."""
        stats = IngestStats()
        for event in events:
            match event:
                case CommEvent():
                    self._on_comm(event)
                    stats.comm += 1
                case ForkEvent():
                    self._on_fork(event)
                    stats.fork += 1
                case ExitEvent():
                    self._on_exit(event)
                    stats.exit += 1
                case UnknownEvent(kind=kind):
                    logger.debug("Skipping event type %s", kind)
                    stats.skipped[kind] += 1
                case _:
                    kind = type(event).__name__
                    logger.debug("Skipping event type %s", kind)
                    stats.skipped[kind] += 1
        return stats

    def _on_comm(self, event: CommEvent) -> None:
        record = self._registry.get_or_create(ProcessKey(event.pid, event.tid))
        record.name = event.comm
        if record.start_ns is None:
            record.start_ns = event.sample_time_ns
        self._commands.register(event.comm)

    def _on_fork(self, event: ForkEvent) -> None:
        key = ProcessKey(event.pid, event.tid)
        record = self._registry.get_or_create(key)
        record.start_ns = event.fork_time_ns
        parent = event.parent_key
        if parent is not None and parent != key:
            self._registry.link(key, parent)

    def _on_exit(self, event: ExitEvent) -> None:
        record = self._registry.get_or_create(ProcessKey(event.pid, event.tid))
        if record.end_ns is not None:
            logger.debug("Repeated exit for %s, last one wins", record.key)
        record.end_ns = event.exit_time_ns
