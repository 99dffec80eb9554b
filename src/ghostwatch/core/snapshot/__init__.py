"""Snapshot data model: entities keyed by id inside one immutable capture."""

from ghostwatch.core.snapshot.models import (
    OFFSET_SCALE,
    Alliance,
    Island,
    IslandKey,
    Offset,
    Player,
    Snapshot,
    Town,
    ValidSnapshot,
)
from ghostwatch.core.snapshot.serialization import snapshot_from_dict, snapshot_to_dict

__all__ = [
    "OFFSET_SCALE",
    "Alliance",
    "Island",
    "IslandKey",
    "Offset",
    "Player",
    "Snapshot",
    "Town",
    "ValidSnapshot",
    "snapshot_from_dict",
    "snapshot_to_dict",
]
