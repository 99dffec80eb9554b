"""Change events and change sets produced by the Diff Engine.

Events are write-once and denormalized: they carry names rather than ids,
because the owner or alliance they mention may not exist in any later
snapshot.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class EventKind(Enum):
    """Kinds of change, in tie-break order."""

    TERRITORY_APPEARED = "territory-appeared"
    """A town lost its owner and became a ghost town."""

    TERRITORY_CONQUERED = "territory-conquered"
    """A ghost town gained an owner."""

    OCCUPANT_DEPARTED = "occupant-departed"
    """A player vanished from the world."""

    @property
    def order(self) -> int:
        return _KIND_ORDER[self]


_KIND_ORDER = {kind: index for index, kind in enumerate(EventKind)}


@dataclass(frozen=True, slots=True)
class ChangeEvent:
    """One discrete change between two snapshots.

    Territory events fill ``x``/``y``; occupant events fill ``towns``/``rank``.
    ``owner_name`` is the last known occupant for an appeared territory, the
    new occupant for a conquered one, and the player itself for a departure.
    """

    kind: EventKind
    occurred_at: datetime
    entity_id: int
    name: str
    points: int
    owner_name: str | None = None
    alliance_name: str | None = None
    x: float | None = None
    y: float | None = None
    towns: int | None = None
    rank: int | None = None

    def sort_key(self) -> tuple[datetime, int, int]:
        return (self.occurred_at, self.kind.order, self.entity_id)

    def to_dict(self) -> dict[str, Any]:
        """Convert to JSON-serializable dictionary."""
        result: dict[str, Any] = {
            "kind": self.kind.value,
            "occurred_at": self.occurred_at.isoformat(),
            "entity_id": self.entity_id,
            "name": self.name,
            "points": self.points,
            "owner_name": self.owner_name,
            "alliance_name": self.alliance_name,
        }
        if self.kind is EventKind.OCCUPANT_DEPARTED:
            result["towns"] = self.towns
            result["rank"] = self.rank
        else:
            result["x"] = self.x
            result["y"] = self.y
        return result


@dataclass(frozen=True, slots=True)
class ChangeSet:
    """All events produced by one diff, ordered for storage.

    ``captured_at`` is the candidate snapshot's timestamp and identifies the
    change set: two change sets from the same cycle share it.
    """

    captured_at: datetime
    events: tuple[ChangeEvent, ...] = field(default=())

    def __post_init__(self) -> None:
        ordered = tuple(sorted(self.events, key=ChangeEvent.sort_key))
        object.__setattr__(self, "events", ordered)

    @classmethod
    def empty(cls, captured_at: datetime) -> ChangeSet:
        return cls(captured_at=captured_at)

    @classmethod
    def of(cls, captured_at: datetime, events: Iterable[ChangeEvent]) -> ChangeSet:
        return cls(captured_at=captured_at, events=tuple(events))

    def by_kind(self, kind: EventKind) -> tuple[ChangeEvent, ...]:
        return tuple(event for event in self.events if event.kind is kind)

    def ids(self, kind: EventKind) -> frozenset[int]:
        return frozenset(event.entity_id for event in self.events if event.kind is kind)

    def counts(self) -> dict[EventKind, int]:
        counts = dict.fromkeys(EventKind, 0)
        for event in self.events:
            counts[event.kind] += 1
        return counts

    def __iter__(self) -> Iterator[ChangeEvent]:
        return iter(self.events)

    def __len__(self) -> int:
        return len(self.events)

    def __bool__(self) -> bool:
        return bool(self.events)

    def __str__(self) -> str:
        counts = self.counts()
        return (
            f"ChangeSet({self.captured_at.isoformat()}, "
            f"appeared={counts[EventKind.TERRITORY_APPEARED]}, "
            f"conquered={counts[EventKind.TERRITORY_CONQUERED]}, "
            f"departed={counts[EventKind.OCCUPANT_DEPARTED]})"
        )
