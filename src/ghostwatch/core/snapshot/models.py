"""World state entities and the immutable Snapshot that owns them.

Usage:
    snapshot = Snapshot(
        captured_at=datetime.now(tz=UTC),
        alliances={1: Alliance(1, "Sparta", 1000, 10, 5, 1)},
        players={3: Player(3, "leonidas", 1, 500, 1, 2)},
        islands={(500, 500): Island(10, 500, 500, 1, 20, "wood", "iron")},
        offsets={0: Offset(1, 50, 25, 0)},
        towns={7: Town(7, "Thermopylae", 120, 3, 500, 500, 0)},
    )
    snapshot.ghost_town_ids()  # frozenset()

Relationships are plain ids resolved against the owning Snapshot at read
time. Nothing holds a reference to another entity object, so Snapshots are
flat lookup tables that compare and serialize structurally.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from types import MappingProxyType
from typing import Any

OFFSET_SCALE = 125.0
"""Offsets are expressed in 1/125ths of an island cell."""

IslandKey = tuple[int, int]


@dataclass(frozen=True, slots=True)
class Alliance:
    id: int
    name: str
    points: int
    towns: int
    members: int
    rank: int


@dataclass(frozen=True, slots=True)
class Player:
    id: int
    name: str
    alliance_id: int | None
    points: int
    rank: int
    towns: int


@dataclass(frozen=True, slots=True)
class Island:
    id: int
    x: int
    y: int
    type: int
    towns: int
    resource_plus: str
    resource_minus: str

    @property
    def key(self) -> IslandKey:
        return (self.x, self.y)


@dataclass(frozen=True, slots=True)
class Offset:
    """Position of a town slot relative to its island's origin."""

    type: int
    x: int
    y: int
    slot_number: int


@dataclass(frozen=True, slots=True)
class Town:
    """A territory. A town without ``player_id`` is a ghost town."""

    id: int
    name: str
    points: int
    player_id: int | None
    island_x: int
    island_y: int
    slot_number: int

    @property
    def island_xy(self) -> IslandKey:
        return (self.island_x, self.island_y)

    @property
    def is_ghost(self) -> bool:
        return self.player_id is None

    def position(self, offset: Offset) -> tuple[float, float]:
        """Absolute map position given the town's slot offset."""
        return (
            self.island_x + offset.x / OFFSET_SCALE,
            self.island_y + offset.y / OFFSET_SCALE,
        )


def _freeze(table: Mapping[Any, Any] | None) -> Mapping[Any, Any]:
    return MappingProxyType(dict(table or {}))


class Snapshot:
    """Immutable capture of every tracked entity at one instant.

    Tables are keyed by id (islands by coordinate pair, offsets by slot
    number) and exposed as read-only mappings.

    Args:
        captured_at: Timezone-aware capture timestamp.
        alliances: Alliances by id.
        players: Players by id.
        islands: Islands by (x, y).
        offsets: Offsets by slot number.
        towns: Towns by id.
    """

    __slots__ = ("_captured_at", "_alliances", "_players", "_islands", "_offsets", "_towns")

    def __init__(
        self,
        captured_at: datetime,
        alliances: Mapping[int, Alliance] | None = None,
        players: Mapping[int, Player] | None = None,
        islands: Mapping[IslandKey, Island] | None = None,
        offsets: Mapping[int, Offset] | None = None,
        towns: Mapping[int, Town] | None = None,
    ) -> None:
        if captured_at.tzinfo is None:
            raise ValueError("Snapshot.captured_at must be timezone-aware")
        object.__setattr__(self, "_captured_at", captured_at)
        object.__setattr__(self, "_alliances", _freeze(alliances))
        object.__setattr__(self, "_players", _freeze(players))
        object.__setattr__(self, "_islands", _freeze(islands))
        object.__setattr__(self, "_offsets", _freeze(offsets))
        object.__setattr__(self, "_towns", _freeze(towns))

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("Snapshot is immutable")

    def __delattr__(self, name: str) -> None:
        raise AttributeError("Snapshot is immutable")

    @property
    def captured_at(self) -> datetime:
        return self._captured_at

    @property
    def alliances(self) -> Mapping[int, Alliance]:
        return self._alliances

    @property
    def players(self) -> Mapping[int, Player]:
        return self._players

    @property
    def islands(self) -> Mapping[IslandKey, Island]:
        return self._islands

    @property
    def offsets(self) -> Mapping[int, Offset]:
        return self._offsets

    @property
    def towns(self) -> Mapping[int, Town]:
        return self._towns

    def ghost_town_ids(self) -> frozenset[int]:
        """Ids of all towns without an owner."""
        return frozenset(town.id for town in self._towns.values() if town.is_ghost)

    def player_ids(self) -> frozenset[int]:
        return frozenset(self._players)

    def owner_of(self, town: Town) -> Player | None:
        if town.player_id is None:
            return None
        return self._players.get(town.player_id)

    def alliance_of(self, player: Player | None) -> Alliance | None:
        if player is None or player.alliance_id is None:
            return None
        return self._alliances.get(player.alliance_id)

    def position_of(self, town: Town) -> tuple[float, float]:
        """Absolute position of a town; falls back to the island origin without an offset."""
        offset = self._offsets.get(town.slot_number)
        if offset is None:
            return (float(town.island_x), float(town.island_y))
        return town.position(offset)

    def same_world(self, other: Snapshot) -> bool:
        """Structural equality of every entity table, ignoring the capture time."""
        return (
            self._towns == other._towns
            and self._players == other._players
            and self._alliances == other._alliances
            and self._islands == other._islands
            and self._offsets == other._offsets
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Snapshot):
            return NotImplemented
        return self._captured_at == other._captured_at and self.same_world(other)

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return (
            f"Snapshot(captured_at={self._captured_at.isoformat()}, "
            f"alliances={len(self._alliances)}, players={len(self._players)}, "
            f"islands={len(self._islands)}, offsets={len(self._offsets)}, "
            f"towns={len(self._towns)})"
        )


class ValidSnapshot:
    """A Snapshot that passed referential validation.

    Only ``ghostwatch.core.validation.validate`` should construct these.
    Attribute access is delegated to the wrapped Snapshot.
    """

    __slots__ = ("_snapshot",)

    def __init__(self, snapshot: Snapshot) -> None:
        self._snapshot = snapshot

    @property
    def snapshot(self) -> Snapshot:
        return self._snapshot

    def __getattr__(self, name: str) -> Any:
        if name == "_snapshot":
            raise AttributeError(name)
        return getattr(self._snapshot, name)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ValidSnapshot):
            return self._snapshot == other._snapshot
        if isinstance(other, Snapshot):
            return self._snapshot == other
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"Valid{self._snapshot!r}"
