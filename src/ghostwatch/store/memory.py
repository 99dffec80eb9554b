"""In-memory Event Store.

Simple list-based store suitable for tests and dry runs. Nothing survives
the process.

Usage:
    store = MemoryEventStore()
    store.append(changeset, baseline=snapshot)
"""

from __future__ import annotations

from datetime import datetime

from ghostwatch.core.events import ChangeEvent, ChangeSet, EventKind
from ghostwatch.core.snapshot import Snapshot
from ghostwatch.store.protocol import DEFAULT_VIEW_LIMIT, LatestView


class MemoryEventStore:
    """Event Store holding events in per-kind lists.

    Structure:
        _events[kind] = [event, ...] in insertion order
        _applied = {captured_at, ...}
        _baseline = last snapshot passed to append
    """

    def __init__(self) -> None:
        self._events: dict[EventKind, list[ChangeEvent]] = {kind: [] for kind in EventKind}
        self._applied: set[datetime] = set()
        self._baseline: Snapshot | None = None

    def append(self, changeset: ChangeSet, baseline: Snapshot | None = None) -> bool:
        """Append a change set's events unless already applied or empty."""
        if changeset.captured_at in self._applied:
            return False
        written = bool(changeset)
        if written:
            staged = {kind: list(events) for kind, events in self._events.items()}
            for event in changeset:
                staged[event.kind].append(event)
            self._events = staged
            self._applied.add(changeset.captured_at)
        if baseline is not None:
            self._baseline = baseline
        return written

    def load_baseline(self) -> Snapshot | None:
        return self._baseline

    def latest(self, limit: int = DEFAULT_VIEW_LIMIT) -> LatestView:
        selected: dict[EventKind, list[ChangeEvent]] = {}
        for kind, events in self._events.items():
            ordered = sorted(events, key=ChangeEvent.sort_key)
            selected[kind] = ordered[-limit:] if limit > 0 else []
        return LatestView.from_events(selected)

    def event_count(self, kind: EventKind | None = None) -> int:
        """Number of stored events, optionally of one kind."""
        if kind is not None:
            return len(self._events[kind])
        return sum(len(events) for events in self._events.values())

    def close(self) -> None:
        pass
