"""SQLite-specific Event Store tests: durability and transactional failure."""

import json
import sqlite3
from datetime import timedelta

import pytest

from ghostwatch import ChangeEvent, ChangeSet, EventKind
from ghostwatch.store import PersistenceError, SqliteEventStore


def _appeared(town_id: int, occurred_at) -> ChangeEvent:
    return ChangeEvent(
        kind=EventKind.TERRITORY_APPEARED,
        occurred_at=occurred_at,
        entity_id=town_id,
        name="Delphi",
        points=300,
        owner_name="pythia",
        alliance_name="Oracles",
        x=512.64,
        y=433.28,
    )


def test_events_survive_reopen(tmp_path, t0):
    path = tmp_path / "events.sqlite"
    changeset = ChangeSet.of(t0, [_appeared(1, t0)])
    SqliteEventStore(path).append(changeset)

    reopened = SqliteEventStore(path)

    assert list(reopened.latest().appeared) == list(changeset.events)
    assert reopened.append(changeset) is False


def test_timestamps_stored_as_utc(tmp_path, t0):
    path = tmp_path / "events.sqlite"
    SqliteEventStore(path).append(ChangeSet.of(t0, [_appeared(1, t0)]))

    with sqlite3.connect(path) as conn:
        [(occurred_at,)] = conn.execute("SELECT occurred_at FROM territory_appeared").fetchall()

    assert occurred_at == "2024-05-01T12:00:00+00:00"


def test_failed_append_writes_nothing(tmp_path, t0):
    """A constraint failure rolls back the ledger row and every event row."""
    path = tmp_path / "events.sqlite"
    store = SqliteEventStore(path)
    broken = ChangeEvent(
        kind=EventKind.OCCUPANT_DEPARTED,
        occurred_at=t0,
        entity_id=5,
        name="nobody",
        points=0,
    )
    changeset = ChangeSet.of(t0, [_appeared(1, t0), broken])

    with pytest.raises(PersistenceError):
        store.append(changeset)

    assert store.latest().counts() == dict.fromkeys(EventKind, 0)
    retry = ChangeSet.of(t0, [_appeared(1, t0)])
    assert store.append(retry) is True


def test_unopenable_database_is_fatal(tmp_path):
    with pytest.raises(PersistenceError):
        SqliteEventStore(tmp_path / "missing-dir" / "events.sqlite")


def test_ties_broken_by_id(tmp_path, t0):
    store = SqliteEventStore(tmp_path / "events.sqlite")
    store.append(ChangeSet.of(t0, [_appeared(i, t0) for i in (5, 1, 3)]))
    later = t0 + timedelta(hours=1)
    store.append(ChangeSet.of(later, [_appeared(2, later)]))

    assert [e.entity_id for e in store.latest(limit=3).appeared] == [3, 5, 2]


def test_baseline_survives_reopen(tmp_path, snapshot_factory, make_town, make_player, t0):
    path = tmp_path / "events.sqlite"
    snapshot = snapshot_factory(
        captured_at=t0, players=[make_player(1)], towns=[make_town(1, 1), make_town(2, None)]
    )
    SqliteEventStore(path).append(ChangeSet.of(t0, [_appeared(2, t0)]), baseline=snapshot)

    assert SqliteEventStore(path).load_baseline() == snapshot


def test_failed_append_keeps_previous_baseline(tmp_path, snapshot_factory, t0, hour):
    """Events and baseline commit together: a rolled-back append leaves both untouched."""
    store = SqliteEventStore(tmp_path / "events.sqlite")
    store.append(ChangeSet.empty(t0), baseline=snapshot_factory(captured_at=t0))
    later = t0 + hour
    broken = ChangeEvent(
        kind=EventKind.OCCUPANT_DEPARTED,
        occurred_at=later,
        entity_id=5,
        name="nobody",
        points=0,
    )

    with pytest.raises(PersistenceError):
        store.append(
            ChangeSet.of(later, [_appeared(1, later), broken]),
            baseline=snapshot_factory(captured_at=later),
        )

    assert store.load_baseline().captured_at == t0
    assert store.latest().counts() == dict.fromkeys(EventKind, 0)


@pytest.mark.parametrize("stored", ["{not json", "[]", "null", '{"version": 99}'])
def test_undecodable_baseline_loads_none(tmp_path, snapshot_factory, t0, stored):
    """A damaged baseline is treated as absent so bootstrap refetches."""
    path = tmp_path / "events.sqlite"
    store = SqliteEventStore(path)
    store.append(ChangeSet.empty(t0), baseline=snapshot_factory(captured_at=t0))
    with sqlite3.connect(path) as conn:
        conn.execute("UPDATE baseline SET snapshot = ? WHERE id = 1", (stored,))

    assert store.load_baseline() is None


def test_baseline_stored_as_json(tmp_path, snapshot_factory, t0):
    path = tmp_path / "events.sqlite"
    SqliteEventStore(path).append(ChangeSet.empty(t0), baseline=snapshot_factory(captured_at=t0))

    with sqlite3.connect(path) as conn:
        [(captured_at, text)] = conn.execute("SELECT captured_at, snapshot FROM baseline").fetchall()

    assert captured_at == "2024-05-01T12:00:00+00:00"
    assert json.loads(text)["version"] == 1
