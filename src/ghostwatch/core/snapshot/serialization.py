"""JSON-compatible conversion of Snapshots for warm restart."""

from __future__ import annotations

from dataclasses import asdict
from datetime import datetime
from typing import Any

from ghostwatch.core.snapshot.models import Alliance, Island, Offset, Player, Snapshot, Town

FORMAT_VERSION = 1


def snapshot_to_dict(snapshot: Snapshot) -> dict[str, Any]:
    """Convert to JSON-serializable dictionary.

    Tables become lists of records; the table keys are recomputed on load.
    """
    return {
        "version": FORMAT_VERSION,
        "captured_at": snapshot.captured_at.isoformat(),
        "alliances": [asdict(a) for a in snapshot.alliances.values()],
        "players": [asdict(p) for p in snapshot.players.values()],
        "islands": [asdict(i) for i in snapshot.islands.values()],
        "offsets": [asdict(o) for o in snapshot.offsets.values()],
        "towns": [asdict(t) for t in snapshot.towns.values()],
    }


def snapshot_from_dict(data: dict[str, Any]) -> Snapshot:
    """Create from dictionary (for deserialization).

    Raises:
        ValueError: If the format version is unknown.
        KeyError, TypeError: If a record is missing fields.
    """
    version = data.get("version")
    if version != FORMAT_VERSION:
        raise ValueError(f"Unsupported snapshot format version: {version!r}")

    alliances = [Alliance(**record) for record in data["alliances"]]
    players = [Player(**record) for record in data["players"]]
    islands = [Island(**record) for record in data["islands"]]
    offsets = [Offset(**record) for record in data["offsets"]]
    towns = [Town(**record) for record in data["towns"]]

    return Snapshot(
        captured_at=datetime.fromisoformat(data["captured_at"]),
        alliances={a.id: a for a in alliances},
        players={p.id: p for p in players},
        islands={i.key: i for i in islands},
        offsets={o.slot_number: o for o in offsets},
        towns={t.id: t for t in towns},
    )
