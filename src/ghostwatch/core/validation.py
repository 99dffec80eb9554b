"""Referential validation of Snapshots.

A Snapshot only enters the Diff Engine as a ValidSnapshot. Validation checks
every cross-reference exhaustively and reports all violations at once.

Usage:
    try:
        valid = validate(snapshot)
    except ValidationError as e:
        for violation in e.violations:
            ...
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from ghostwatch.core.errors import TransientError
from ghostwatch.core.snapshot import Snapshot, ValidSnapshot


class ViolationKind(Enum):
    UNKNOWN_ALLIANCE = "unknown-alliance"
    UNKNOWN_OWNER = "unknown-owner"
    UNKNOWN_ISLAND = "unknown-island"
    UNKNOWN_OFFSET = "unknown-offset"


@dataclass(frozen=True, slots=True)
class Violation:
    """One broken reference.

    Attributes:
        kind: Which reference is broken.
        entity: Referring entity type ("player" or "town").
        entity_id: Id of the referring entity.
        reference: The id (or coordinate pair) that could not be resolved.
    """

    kind: ViolationKind
    entity: str
    entity_id: int
    reference: object

    def __str__(self) -> str:
        return f"{self.entity} {self.entity_id}: {self.kind.value} {self.reference!r}"


class ValidationError(TransientError):
    """Raised when a Snapshot violates referential integrity.

    Treated as a transient source error: upstream data is presumed to be
    mid-write and expected to be consistent on the next poll.
    """

    def __init__(self, violations: list[Violation]) -> None:
        self.violations = tuple(violations)
        shown = "; ".join(str(v) for v in self.violations[:5])
        more = len(self.violations) - 5
        if more > 0:
            shown += f"; ... and {more} more"
        super().__init__(f"{len(self.violations)} referential violation(s): {shown}")


def find_violations(snapshot: Snapshot) -> list[Violation]:
    """Collect every broken reference in the snapshot.

    Players are checked before towns; within each table entities are checked
    in ascending id order so the report is deterministic.
    """
    violations: list[Violation] = []

    for player_id in sorted(snapshot.players):
        player = snapshot.players[player_id]
        if player.alliance_id is not None and player.alliance_id not in snapshot.alliances:
            violations.append(
                Violation(ViolationKind.UNKNOWN_ALLIANCE, "player", player.id, player.alliance_id)
            )

    for town_id in sorted(snapshot.towns):
        town = snapshot.towns[town_id]
        if town.player_id is not None and town.player_id not in snapshot.players:
            violations.append(
                Violation(ViolationKind.UNKNOWN_OWNER, "town", town.id, town.player_id)
            )
        if town.island_xy not in snapshot.islands:
            violations.append(
                Violation(ViolationKind.UNKNOWN_ISLAND, "town", town.id, town.island_xy)
            )
        if town.slot_number not in snapshot.offsets:
            violations.append(
                Violation(ViolationKind.UNKNOWN_OFFSET, "town", town.id, town.slot_number)
            )

    return violations


def validate(snapshot: Snapshot) -> ValidSnapshot:
    """Check referential integrity and wrap the snapshot.

    Args:
        snapshot: Freshly fetched or loaded snapshot.

    Returns:
        The same snapshot wrapped as a ValidSnapshot.

    Raises:
        ValidationError: If any reference is broken.
    """
    if isinstance(snapshot, ValidSnapshot):
        return snapshot
    violations = find_violations(snapshot)
    if violations:
        raise ValidationError(violations)
    return ValidSnapshot(snapshot)
