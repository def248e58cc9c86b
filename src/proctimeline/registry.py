"""Per-run stores for process records and command ids."""

from collections.abc import Iterator

from proctimeline.models import ProcessKey, ProcessRecord


class ProcessRegistry:
    """
    Owns one ProcessRecord per (pid, tid) for a single conversion run.

    Records are created lazily on first reference and never removed.
    Parent/child links are stored as keys and looked up on demand.
    """

    def __init__(self) -> None:
        self._records: dict[ProcessKey, ProcessRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, key: object) -> bool:
        return key in self._records

    def __iter__(self) -> Iterator[ProcessRecord]:
        """Iterate records in ascending key order."""
        for key in sorted(self._records):
            yield self._records[key]

    def get(self, key: ProcessKey) -> ProcessRecord | None:
        """Return the record for key, or None if it was never seen."""
        return self._records.get(key)

    def get_or_create(self, key: ProcessKey) -> ProcessRecord:
        """Return the record for key, inserting an empty one if needed."""
        key = ProcessKey(*key)
        record = self._records.get(key)
        if record is None:
            record = ProcessRecord(key=key)
            self._records[key] = record
        return record

    def link(self, child: ProcessKey, parent: ProcessKey) -> None:
        """Record that parent forked child."""
        child_record = self.get_or_create(child)
        parent_record = self.get_or_create(parent)
        if child_record.parent is not None and child_record.parent != parent_record.key:
            previous = self._records.get(child_record.parent)
            if previous is not None:
                previous.children.discard(child_record.key)
        child_record.parent = parent_record.key
        parent_record.children.add(child_record.key)

    def parent_of(self, key: ProcessKey) -> ProcessRecord | None:
        record = self._records.get(key)
        if record is None or record.parent is None:
            return None
        return self._records.get(record.parent)

    def children_of(self, key: ProcessKey) -> list[ProcessRecord]:
        """Child records of key, in key order."""
        record = self._records.get(key)
        if record is None:
            return []
        return [self._records[child] for child in sorted(record.children) if child in self._records]

    def complete_records(self) -> list[ProcessRecord]:
        """Records with both bounds set, in key order."""
        return [record for record in self if record.is_complete]


class CommandRegistry:
    """Maps command names to small integer ids in first-seen order."""

    def __init__(self) -> None:
        self._ids: dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._ids)

    def __contains__(self, name: object) -> bool:
        return name in self._ids

    def register(self, name: str) -> int:
        """Return the id for name, assigning the next one if it is new."""
        command_id = self._ids.get(name)
        if command_id is None:
            command_id = len(self._ids)
            self._ids[name] = command_id
        return command_id

    def id_of(self, name: str) -> int | None:
        """Row id of a registered name."""
        return self._ids.get(name)

    def names(self) -> list[str]:
        """Registered names ordered by id."""
        return list(self._ids)
