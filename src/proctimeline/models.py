"""Data models for proctimeline."""

from dataclasses import dataclass, field
from enum import Enum
from typing import NamedTuple, TypeAlias

from proctimeline.logging_config import get_logger

logger = get_logger("models")


class ProcessKey(NamedTuple):
    """Identity of a registry entry: a (pid, tid) pair."""

    pid: int
    tid: int

    def __str__(self) -> str:
        return f"{self.pid}/{self.tid}"


@dataclass(slots=True)
class ProcessRecord:
    """
    Lifetime of one process/thread as reconstructed from profiler events.

    Timestamps are nanoseconds; None means the bound was never observed.
    Parent and children are stored as keys and resolved through the registry.
    """

    key: ProcessKey
    name: str = ""
    start_ns: int | None = None
    end_ns: int | None = None
    parent: ProcessKey | None = None
    children: set[ProcessKey] = field(default_factory=set)
    render_row: int | None = None

    @property
    def is_complete(self) -> bool:
        """Both bounds have been observed."""
        return self.start_ns is not None and self.end_ns is not None

    @property
    def is_renderable(self) -> bool:
        """Complete and not inverted (exit before start)."""
        return self.is_complete and self.end_ns >= self.start_ns

    @property
    def is_link_only(self) -> bool:
        """Known only as a fork parent: no bounds of its own, but has children."""
        return self.start_ns is None and self.end_ns is None and bool(self.children)

    @property
    def duration_ns(self) -> int | None:
        """Interval length, or None while a bound is missing."""
        if not self.is_complete:
            return None
        return self.end_ns - self.start_ns

    @property
    def display_name(self) -> str:
        """Command name, or the key when no rename event was seen."""
        return self.name or f"<{self.key}>"


@dataclass(slots=True, frozen=True)
class CommEvent:
    """A process/thread reported its command name (PERF_RECORD_COMM)."""

    pid: int
    tid: int
    comm: str
    sample_time_ns: int

    @property
    def time_ns(self) -> int:
        """Sample timestamp of the rename."""
        return self.sample_time_ns


@dataclass(slots=True, frozen=True)
class ForkEvent:
    """A process/thread was created (PERF_RECORD_FORK)."""

    pid: int
    tid: int
    fork_time_ns: int
    ppid: int | None = None
    ptid: int | None = None

    @property
    def time_ns(self) -> int:
        """Creation timestamp."""
        return self.fork_time_ns

    @property
    def parent_key(self) -> ProcessKey | None:
        """Key of the forking process, when both parent ids are known."""
        if self.ppid is None or self.ptid is None:
            return None
        return ProcessKey(self.ppid, self.ptid)


@dataclass(slots=True, frozen=True)
class ExitEvent:
    """A process/thread terminated (PERF_RECORD_EXIT)."""

    pid: int
    tid: int
    exit_time_ns: int

    @property
    def time_ns(self) -> int:
        """Termination timestamp."""
        return self.exit_time_ns


@dataclass(slots=True, frozen=True)
class UnknownEvent:
    """Any record kind the ingestor does not handle."""

    kind: str
    time_ns: int | None = None


ProfilerEvent: TypeAlias = CommEvent | ForkEvent | ExitEvent | UnknownEvent


class RenderMode(Enum):
    """How process records are packed onto trace rows."""

    # Every record on one row; overlapping records stack like a flamegraph.
    FLAT = "flat"
    # Overlapping records spread over the fewest rows that avoid collisions.
    FLAME = "flame"
    # One row per record.
    CASCADE = "cascade"
    # One row per command name.
    COMMAND = "command"

    @classmethod
    def default(cls) -> "RenderMode":
        """Mode used when no valid token is given."""
        return cls.FLAT

    @classmethod
    def from_token(cls, token: str | None) -> "RenderMode":
        """Map a mode token to a RenderMode, falling back to FLAT."""
        normalized = (token or "").strip().lower()
        for mode in cls:
            if mode.value == normalized:
                return mode
        default = cls.default()
        logger.warning("Unknown render mode %r, using %s", token, default.value)
        return default
