"""Record-stream parsing.

Each resource is newline-delimited, comma-separated, with a fixed column
order. Name fields are form-urlencoded (``+`` is a space, ``%XX`` escapes).

Column orders:
    alliances: id,name,points,towns,members,rank
    players:   id,name,alliance_id,points,rank,towns
    towns:     id,player_id,name,island_x,island_y,slot_number,points
    islands:   id,x,y,type,towns,resource_plus,resource_minus
    offsets:   type,x,y,slot_number

Parsing keeps references as raw ids. Dangling references are left for the
validator to report.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from datetime import datetime
from typing import Any
from urllib.parse import unquote_plus

from ghostwatch.core.snapshot import Alliance, Island, IslandKey, Offset, Player, Snapshot, Town
from ghostwatch.source.errors import RecordParseError

Converter = Callable[[str], Any]


def decode_name(text: str) -> str:
    """Decode a form-urlencoded name field."""
    return unquote_plus(text)


def optional_int(text: str) -> int | None:
    """Empty means no reference."""
    return int(text) if text else None


def _records(
    resource: str, data: str, columns: tuple[tuple[str, Converter], ...]
) -> Iterator[dict[str, Any]]:
    """Yield one decoded record per non-blank line.

    Raises:
        RecordParseError: On a missing column or a failed conversion.
    """
    for line_number, raw in enumerate(data.splitlines(), start=1):
        line = raw.strip()
        if not line:
            continue
        values = line.split(",")
        record: dict[str, Any] = {}
        for index, (name, convert) in enumerate(columns):
            if index >= len(values):
                raise RecordParseError(resource, line_number, name, line)
            try:
                record[name] = convert(values[index])
            except ValueError as e:
                raise RecordParseError(resource, line_number, name, line) from e
        yield record


ALLIANCE_COLUMNS: tuple[tuple[str, Converter], ...] = (
    ("id", int),
    ("name", decode_name),
    ("points", int),
    ("towns", int),
    ("members", int),
    ("rank", int),
)

PLAYER_COLUMNS: tuple[tuple[str, Converter], ...] = (
    ("id", int),
    ("name", decode_name),
    ("alliance_id", optional_int),
    ("points", int),
    ("rank", int),
    ("towns", int),
)

TOWN_COLUMNS: tuple[tuple[str, Converter], ...] = (
    ("id", int),
    ("player_id", optional_int),
    ("name", decode_name),
    ("island_x", int),
    ("island_y", int),
    ("slot_number", int),
    ("points", int),
)

ISLAND_COLUMNS: tuple[tuple[str, Converter], ...] = (
    ("id", int),
    ("x", int),
    ("y", int),
    ("type", int),
    ("towns", int),
    ("resource_plus", str),
    ("resource_minus", str),
)

OFFSET_COLUMNS: tuple[tuple[str, Converter], ...] = (
    ("type", int),
    ("x", int),
    ("y", int),
    ("slot_number", int),
)


def parse_alliances(data: str) -> dict[int, Alliance]:
    return {
        record["id"]: Alliance(**record)
        for record in _records("alliances", data, ALLIANCE_COLUMNS)
    }


def parse_players(data: str) -> dict[int, Player]:
    return {
        record["id"]: Player(**record) for record in _records("players", data, PLAYER_COLUMNS)
    }


def parse_towns(data: str) -> dict[int, Town]:
    return {record["id"]: Town(**record) for record in _records("towns", data, TOWN_COLUMNS)}


def parse_islands(data: str) -> dict[IslandKey, Island]:
    islands = (Island(**record) for record in _records("islands", data, ISLAND_COLUMNS))
    return {island.key: island for island in islands}


def parse_offsets(data: str) -> dict[int, Offset]:
    offsets = (Offset(**record) for record in _records("offsets", data, OFFSET_COLUMNS))
    return {offset.slot_number: offset for offset in offsets}


def build_snapshot(
    captured_at: datetime,
    *,
    alliances: str,
    players: str,
    towns: str,
    islands: str,
    offsets: dict[int, Offset],
) -> Snapshot:
    """Parse the four fetched resources into one Snapshot."""
    return Snapshot(
        captured_at=captured_at,
        alliances=parse_alliances(alliances),
        players=parse_players(players),
        islands=parse_islands(islands),
        offsets=offsets,
        towns=parse_towns(towns),
    )
