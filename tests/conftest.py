"""Shared test fixtures."""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable
from datetime import UTC, datetime, timedelta

import pytest
from loguru import logger

from ghostwatch import Alliance, Island, Offset, Player, Snapshot, Town

T0 = datetime(2024, 5, 1, 12, 0, tzinfo=UTC)

SnapshotFactory = Callable[..., Snapshot]


@pytest.fixture(autouse=True, scope="session")
def silence_logger():
    logger.remove()
    logger.add(lambda msg: None)
    yield


def build_snapshot(
    captured_at: datetime = T0,
    alliances: Iterable[Alliance] = (),
    players: Iterable[Player] = (),
    towns: Iterable[Town] = (),
    islands: Iterable[Island] | None = None,
    offsets: Iterable[Offset] | None = None,
) -> Snapshot:
    """Snapshot whose islands and offsets default to exactly what the towns need."""
    towns = list(towns)
    if islands is None:
        keys = sorted({t.island_xy for t in towns})
        islands = [Island(i + 1, x, y, 1, 20, "wood", "iron") for i, (x, y) in enumerate(keys)]
    if offsets is None:
        slots = sorted({t.slot_number for t in towns})
        offsets = [Offset(1, 25 * (s + 1), 10 * (s + 1), s) for s in slots]
    return Snapshot(
        captured_at=captured_at,
        alliances={a.id: a for a in alliances},
        players={p.id: p for p in players},
        islands={i.key: i for i in islands},
        offsets={o.slot_number: o for o in offsets},
        towns={t.id: t for t in towns},
    )


def town(town_id: int, player_id: int | None, name: str | None = None, points: int = 100) -> Town:
    """Town on island (500 + id, 400), slot ``id % 20``."""
    return Town(
        id=town_id,
        name=name or f"Town {town_id}",
        points=points,
        player_id=player_id,
        island_x=500 + town_id,
        island_y=400,
        slot_number=town_id % 20,
    )


def player(player_id: int, alliance_id: int | None = None, name: str | None = None) -> Player:
    return Player(
        id=player_id,
        name=name or f"player{player_id}",
        alliance_id=alliance_id,
        points=1000 + player_id,
        rank=player_id,
        towns=1,
    )


def alliance(alliance_id: int, name: str | None = None) -> Alliance:
    return Alliance(
        id=alliance_id,
        name=name or f"alliance{alliance_id}",
        points=10_000,
        towns=10,
        members=5,
        rank=alliance_id,
    )


@pytest.fixture
def snapshot_factory() -> SnapshotFactory:
    return build_snapshot


@pytest.fixture
def make_town() -> Callable[..., Town]:
    return town


@pytest.fixture
def make_player() -> Callable[..., Player]:
    return player


@pytest.fixture
def make_alliance() -> Callable[..., Alliance]:
    return alliance


@pytest.fixture
def t0() -> datetime:
    return T0


@pytest.fixture
def hour() -> timedelta:
    return timedelta(hours=1)


class ScriptedSource:
    """Snapshot Source replaying a script of snapshots and errors.

    Once the script is exhausted, ``fetch`` blocks forever.
    """

    def __init__(self, script: Iterable[Snapshot | Exception] = ()) -> None:
        self.script = list(script)
        self.fetches = 0
        self.closed = False

    def extend(self, *items: Snapshot | Exception) -> None:
        self.script.extend(items)

    async def fetch(self) -> Snapshot:
        self.fetches += 1
        if not self.script:
            await asyncio.Event().wait()
        item = self.script.pop(0)
        if isinstance(item, Exception):
            raise item
        return item

    async def aclose(self) -> None:
        self.closed = True


class FakeClock:
    """Clock and sleep pair; sleeping advances the clock instantly."""

    def __init__(self, now: datetime = T0) -> None:
        self.now = now
        self.sleeps: list[float] = []

    def __call__(self) -> datetime:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def scripted_source() -> Callable[..., ScriptedSource]:
    return ScriptedSource


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()
