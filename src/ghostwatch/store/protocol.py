"""Event Store protocol and read models.

The Event Store durably appends change sets and answers "most recent N
events per kind" queries. The result of such a query is a LatestView, the
aggregate the Presentation Cache serves. It also holds the warm-restart
baseline, written in the same transaction as the events it was diffed into.

Usage:
    store = SqliteEventStore("db.sqlite")
    store.append(changeset, baseline=snapshot)  # events and baseline, one transaction
    store.load_baseline()                       # warm restart
    view = store.latest(limit=200)              # most recent 200 per kind, ascending
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Protocol, runtime_checkable

from ghostwatch.core.errors import FatalPipelineError
from ghostwatch.core.events import ChangeEvent, ChangeSet, EventKind
from ghostwatch.core.snapshot import Snapshot

DEFAULT_VIEW_LIMIT = 200


class PersistenceError(FatalPipelineError):
    """Event Store read or write failed. The process must terminate."""

    pass


@dataclass(frozen=True, slots=True)
class LatestView:
    """Most recent events per kind, each ordered by timestamp ascending.

    Attributes:
        appeared: Towns that became ghost towns.
        conquered: Ghost towns that were taken.
        departed: Players that left the world.
        refreshed_at: When this view was produced, None for the initial empty view.
    """

    appeared: tuple[ChangeEvent, ...] = ()
    conquered: tuple[ChangeEvent, ...] = ()
    departed: tuple[ChangeEvent, ...] = ()
    refreshed_at: datetime | None = field(default=None)

    def events(self, kind: EventKind) -> tuple[ChangeEvent, ...]:
        if kind is EventKind.TERRITORY_APPEARED:
            return self.appeared
        if kind is EventKind.TERRITORY_CONQUERED:
            return self.conquered
        return self.departed

    def counts(self) -> dict[EventKind, int]:
        return {kind: len(self.events(kind)) for kind in EventKind}

    def summary(self) -> str:
        """One-line textual summary of the cached counts."""
        return (
            f"Ghost towns appeared: {len(self.appeared)} / "
            f"conquered: {len(self.conquered)} / "
            f"players departed: {len(self.departed)}"
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        return {
            "refreshed_at": self.refreshed_at.isoformat() if self.refreshed_at else None,
            "counts": {kind.value: count for kind, count in self.counts().items()},
            "events": {kind.value: [e.to_dict() for e in self.events(kind)] for kind in EventKind},
        }

    @classmethod
    def from_events(
        cls,
        events_by_kind: dict[EventKind, list[ChangeEvent]],
        refreshed_at: datetime | None = None,
    ) -> LatestView:
        return cls(
            appeared=tuple(events_by_kind.get(EventKind.TERRITORY_APPEARED, ())),
            conquered=tuple(events_by_kind.get(EventKind.TERRITORY_CONQUERED, ())),
            departed=tuple(events_by_kind.get(EventKind.OCCUPANT_DEPARTED, ())),
            refreshed_at=refreshed_at or datetime.now(tz=UTC),
        )


@runtime_checkable
class EventStore(Protocol):
    """Durable, append-only store of change events and the current baseline.

    Each change set is committed together with the snapshot it was diffed
    into, so after any crash the stored baseline is exactly the one the
    stored events lead to. A restart resumes diffing from that baseline and
    never re-emits committed events.

    Change sets are keyed by ``captured_at``. Sending the same change set
    twice is a no-op.
    """

    def append(self, changeset: ChangeSet, baseline: Snapshot | None = None) -> bool:
        """Apply all events of one change set and the new baseline in one transaction.

        Args:
            changeset: Events to record. May be empty.
            baseline: Snapshot to resume from after a restart. Replaces the
                stored one, even when ``changeset`` is empty.

        Returns:
            True if events were written, False if the change set was empty or
            already applied.

        Raises:
            PersistenceError: If the transaction fails. Nothing is written.
        """
        ...

    def load_baseline(self) -> Snapshot | None:
        """The baseline stored by the last successful append.

        Returns:
            The snapshot, or None if none was stored or it cannot be decoded.

        Raises:
            PersistenceError: If the storage cannot be read.
        """
        ...

    def latest(self, limit: int = DEFAULT_VIEW_LIMIT) -> LatestView:
        """Most recent ``limit`` events per kind, ascending by timestamp.

        Raises:
            PersistenceError: If the query fails.
        """
        ...

    def close(self) -> None:
        """Release the underlying storage."""
        ...
