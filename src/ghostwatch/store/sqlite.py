"""SQLite Event Store.

One table per event kind, a ledger of applied change sets and a single-row
baseline table. Each ``append`` is one transaction covering the ledger row,
every event row and the new baseline, so a change set and the snapshot it
leads to are either durable together or absent together.

Usage:
    store = SqliteEventStore("db.sqlite")
    store.append(changeset, baseline=snapshot)
    view = store.latest(200)
    snapshot = store.load_baseline()
"""

from __future__ import annotations

import json
import sqlite3
from collections.abc import Iterator
from contextlib import closing, contextmanager
from datetime import UTC, datetime
from pathlib import Path

from loguru import logger

from ghostwatch.core.events import ChangeEvent, ChangeSet, EventKind
from ghostwatch.core.snapshot import Snapshot, snapshot_from_dict, snapshot_to_dict
from ghostwatch.store.protocol import DEFAULT_VIEW_LIMIT, LatestView, PersistenceError

SCHEMA = """
CREATE TABLE IF NOT EXISTS applied_changesets (
    captured_at TEXT PRIMARY KEY,
    event_count INTEGER NOT NULL,
    applied_at TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS baseline (
    id INTEGER PRIMARY KEY CHECK (id = 1),
    captured_at TEXT NOT NULL,
    snapshot TEXT NOT NULL
);
CREATE TABLE IF NOT EXISTS territory_appeared (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    occurred_at TEXT NOT NULL,
    town_id INTEGER NOT NULL,
    name TEXT NOT NULL,
    points INTEGER NOT NULL,
    x REAL NOT NULL,
    y REAL NOT NULL,
    player TEXT,
    alliance TEXT
);
CREATE TABLE IF NOT EXISTS territory_conquered (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    occurred_at TEXT NOT NULL,
    town_id INTEGER NOT NULL,
    name TEXT NOT NULL,
    points INTEGER NOT NULL,
    x REAL NOT NULL,
    y REAL NOT NULL,
    player TEXT,
    alliance TEXT
);
CREATE TABLE IF NOT EXISTS occupant_departed (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    occurred_at TEXT NOT NULL,
    player_id INTEGER NOT NULL,
    name TEXT NOT NULL,
    towns INTEGER NOT NULL,
    points INTEGER NOT NULL,
    rank INTEGER NOT NULL,
    alliance TEXT
);
CREATE INDEX IF NOT EXISTS idx_territory_appeared_at ON territory_appeared(occurred_at);
CREATE INDEX IF NOT EXISTS idx_territory_conquered_at ON territory_conquered(occurred_at);
CREATE INDEX IF NOT EXISTS idx_occupant_departed_at ON occupant_departed(occurred_at);
"""

_TERRITORY_TABLES = {
    EventKind.TERRITORY_APPEARED: "territory_appeared",
    EventKind.TERRITORY_CONQUERED: "territory_conquered",
}


def _timestamp(value: datetime) -> str:
    """UTC ISO text, so lexical order matches chronological order."""
    return value.astimezone(UTC).isoformat()


class SqliteEventStore:
    """Event Store persisted to a SQLite database file.

    Args:
        path: Database file. Created with its schema if missing.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = str(path)
        try:
            with self._connect() as conn:
                conn.executescript(SCHEMA)
        except sqlite3.Error as e:
            raise PersistenceError(f"failed to initialize event store at {self._path}: {e}") from e

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        """Connection whose ``with`` block is one transaction."""
        with closing(sqlite3.connect(self._path)) as conn:
            conn.row_factory = sqlite3.Row
            with conn:
                yield conn

    def append(self, changeset: ChangeSet, baseline: Snapshot | None = None) -> bool:
        if not changeset and baseline is None:
            return False
        key = _timestamp(changeset.captured_at)
        try:
            with self._connect() as conn:
                already = conn.execute(
                    "SELECT 1 FROM applied_changesets WHERE captured_at = ?", (key,)
                ).fetchone()
                if already is not None:
                    logger.warning("Change set {} already applied, skipping", key)
                    return False
                if changeset:
                    conn.execute(
                        "INSERT INTO applied_changesets VALUES (?, ?, ?)",
                        (key, len(changeset), _timestamp(datetime.now(tz=UTC))),
                    )
                    for event in changeset:
                        self._insert(conn, event)
                if baseline is not None:
                    conn.execute(
                        "INSERT OR REPLACE INTO baseline (id, captured_at, snapshot) "
                        "VALUES (1, ?, ?)",
                        (
                            _timestamp(baseline.captured_at),
                            json.dumps(snapshot_to_dict(baseline), separators=(",", ":")),
                        ),
                    )
        except sqlite3.Error as e:
            raise PersistenceError(f"failed to append {changeset}: {e}") from e
        return bool(changeset)

    def load_baseline(self) -> Snapshot | None:
        try:
            with self._connect() as conn:
                row = conn.execute("SELECT snapshot FROM baseline WHERE id = 1").fetchone()
        except sqlite3.Error as e:
            raise PersistenceError(f"failed to read baseline from {self._path}: {e}") from e
        if row is None:
            logger.info("No persisted baseline in {}", self._path)
            return None
        try:
            data = json.loads(row["snapshot"])
            if not isinstance(data, dict):
                raise TypeError(f"expected an object, got {type(data).__name__}")
            snapshot = snapshot_from_dict(data)
        except (ValueError, KeyError, TypeError) as e:
            logger.error("Failed to decode persisted baseline in {}: {}", self._path, e)
            return None
        logger.info("Loaded persisted baseline {}", snapshot)
        return snapshot

    def _insert(self, conn: sqlite3.Connection, event: ChangeEvent) -> None:
        if event.kind is EventKind.OCCUPANT_DEPARTED:
            conn.execute(
                "INSERT INTO occupant_departed "
                "(occurred_at, player_id, name, towns, points, rank, alliance) "
                "VALUES (?, ?, ?, ?, ?, ?, ?)",
                (
                    _timestamp(event.occurred_at),
                    event.entity_id,
                    event.name,
                    event.towns,
                    event.points,
                    event.rank,
                    event.alliance_name,
                ),
            )
            return
        table = _TERRITORY_TABLES[event.kind]
        conn.execute(
            f"INSERT INTO {table} "  # nosec B608 - table name from a fixed mapping
            "(occurred_at, town_id, name, points, x, y, player, alliance) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?)",
            (
                _timestamp(event.occurred_at),
                event.entity_id,
                event.name,
                event.points,
                event.x,
                event.y,
                event.owner_name,
                event.alliance_name,
            ),
        )

    def latest(self, limit: int = DEFAULT_VIEW_LIMIT) -> LatestView:
        selected: dict[EventKind, list[ChangeEvent]] = {}
        try:
            with self._connect() as conn:
                for kind, table in _TERRITORY_TABLES.items():
                    rows = self._recent(conn, table, "town_id", limit)
                    selected[kind] = [self._territory_from_row(kind, row) for row in rows]
                rows = self._recent(conn, "occupant_departed", "player_id", limit)
                selected[EventKind.OCCUPANT_DEPARTED] = [self._departure_from_row(r) for r in rows]
        except sqlite3.Error as e:
            raise PersistenceError(f"failed to query latest events: {e}") from e
        return LatestView.from_events(selected)

    @staticmethod
    def _recent(
        conn: sqlite3.Connection, table: str, id_column: str, limit: int
    ) -> list[sqlite3.Row]:
        """Newest ``limit`` rows, returned oldest first."""
        query = (
            f"SELECT * FROM (SELECT * FROM {table} "  # nosec B608 - fixed identifiers
            f"ORDER BY occurred_at DESC, {id_column} DESC LIMIT ?) "
            f"ORDER BY occurred_at ASC, {id_column} ASC"
        )
        return conn.execute(query, (max(limit, 0),)).fetchall()

    @staticmethod
    def _territory_from_row(kind: EventKind, row: sqlite3.Row) -> ChangeEvent:
        return ChangeEvent(
            kind=kind,
            occurred_at=datetime.fromisoformat(row["occurred_at"]),
            entity_id=row["town_id"],
            name=row["name"],
            points=row["points"],
            owner_name=row["player"],
            alliance_name=row["alliance"],
            x=row["x"],
            y=row["y"],
        )

    @staticmethod
    def _departure_from_row(row: sqlite3.Row) -> ChangeEvent:
        return ChangeEvent(
            kind=EventKind.OCCUPANT_DEPARTED,
            occurred_at=datetime.fromisoformat(row["occurred_at"]),
            entity_id=row["player_id"],
            name=row["name"],
            points=row["points"],
            owner_name=row["name"],
            alliance_name=row["alliance"],
            towns=row["towns"],
            rank=row["rank"],
        )

    def close(self) -> None:
        """Connections are per operation; nothing to release."""
        pass
