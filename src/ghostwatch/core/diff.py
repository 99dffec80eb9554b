"""Diff Engine: change events between two validated snapshots.

Pure and deterministic. Only ownership transitions of towns and the
disappearance of players are tracked; a town vanishing outright produces
nothing.

Usage:
    changeset = diff(baseline, candidate)
    for event in changeset:
        ...
"""

from __future__ import annotations

from ghostwatch.core.errors import InvariantViolation
from ghostwatch.core.events import ChangeEvent, ChangeSet, EventKind
from ghostwatch.core.snapshot import Player, Snapshot, Town, ValidSnapshot


def _territory_event(
    kind: EventKind, town: Town, occupant_source: Snapshot, current: Snapshot
) -> ChangeEvent:
    """Render a territory event.

    Names come from ``occupant_source``; the timestamp always comes from
    ``current``.
    """
    owner = occupant_source.owner_of(town)
    alliance = occupant_source.alliance_of(owner)
    x, y = occupant_source.position_of(town)
    return ChangeEvent(
        kind=kind,
        occurred_at=current.captured_at,
        entity_id=town.id,
        name=town.name,
        points=town.points,
        owner_name=owner.name if owner is not None else None,
        alliance_name=alliance.name if alliance is not None else None,
        x=x,
        y=y,
    )


def _departure_event(player: Player, previous: Snapshot, current: Snapshot) -> ChangeEvent:
    alliance = previous.alliance_of(player)
    return ChangeEvent(
        kind=EventKind.OCCUPANT_DEPARTED,
        occurred_at=current.captured_at,
        entity_id=player.id,
        name=player.name,
        points=player.points,
        owner_name=player.name,
        alliance_name=alliance.name if alliance is not None else None,
        towns=player.towns,
        rank=player.rank,
    )


def _require_town(snapshot: Snapshot, town_id: int, role: str) -> Town:
    town = snapshot.towns.get(town_id)
    if town is None:
        raise InvariantViolation(f"ghost town {town_id} has no town record in {role} snapshot")
    return town


def diff(previous: ValidSnapshot, current: ValidSnapshot) -> ChangeSet:
    """Compute the change set between a baseline and a candidate.

    Args:
        previous: The baseline snapshot.
        current: The newly fetched snapshot.

    Returns:
        ChangeSet stamped with ``current``'s capture time, events ordered by
        (timestamp, kind, entity id).

    Raises:
        TypeError: If either argument has not been validated.
        InvariantViolation: If a ghost town id has no backing town record.
    """
    if not isinstance(previous, ValidSnapshot) or not isinstance(current, ValidSnapshot):
        raise TypeError("diff() requires validated snapshots")

    prev = previous.snapshot
    curr = current.snapshot

    if prev.same_world(curr):
        return ChangeSet.empty(curr.captured_at)

    ghosts_prev = prev.ghost_town_ids()
    ghosts_curr = curr.ghost_town_ids()
    events: list[ChangeEvent] = []

    # Became a ghost: only towns that were owned before count, so towns that
    # are new and already unowned are ignored.
    for town_id in ghosts_curr - ghosts_prev:
        town = prev.towns.get(town_id)
        if town is None:
            continue
        events.append(_territory_event(EventKind.TERRITORY_APPEARED, town, prev, curr))

    # Ghost town taken over. A ghost that vanished entirely is not tracked.
    for town_id in ghosts_prev - ghosts_curr:
        _require_town(prev, town_id, "previous")
        if town_id not in curr.towns:
            continue
        town = curr.towns[town_id]
        events.append(_territory_event(EventKind.TERRITORY_CONQUERED, town, curr, curr))

    for player_id in prev.player_ids() - curr.player_ids():
        events.append(_departure_event(prev.players[player_id], prev, curr))

    return ChangeSet.of(curr.captured_at, events)
