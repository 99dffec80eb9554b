"""End-to-end journeys through every stage with a SQLite Event Store.

Each journey drives the coordinator cycle by cycle and drains both consumer
stages, then checks what an HTTP reader would see.
"""

import pytest

from ghostwatch import EventKind
from ghostwatch.config import PipelineSettings
from ghostwatch.pipeline import Pipeline, build_pipeline
from ghostwatch.source import SourceError


@pytest.fixture
def settings(tmp_path) -> PipelineSettings:
    return PipelineSettings(
        _env_file=None,
        min_capture_interval=0,
        retry_interval=0,
        database_path=tmp_path / "db.sqlite",
    )


async def _settle(pipeline: Pipeline) -> None:
    await pipeline.persistence.drain()
    await pipeline.presentation.drain()


async def _cycle(pipeline: Pipeline) -> None:
    await pipeline.coordinator.run_cycle()
    await _settle(pipeline)


@pytest.mark.asyncio
async def test_ghost_town_lifecycle(
    settings, scripted_source, snapshot_factory, make_town, make_player, make_alliance, t0, hour
):
    """A town is abandoned, stays a ghost for a cycle, then is conquered."""
    alliances = [make_alliance(1, "Sparta"), make_alliance(2, "Athens")]
    leonidas = make_player(3, alliance_id=1, name="leonidas")
    pericles = make_player(5, alliance_id=2, name="pericles")
    source = scripted_source(
        [
            snapshot_factory(t0, alliances, [leonidas, pericles], [make_town(7, 3)]),
            snapshot_factory(t0 + hour, alliances, [leonidas, pericles], [make_town(7, None)]),
            snapshot_factory(t0 + 2 * hour, alliances, [leonidas, pericles], [make_town(7, None)]),
            snapshot_factory(t0 + 3 * hour, alliances, [pericles], [make_town(7, 5)]),
        ]
    )
    pipeline = build_pipeline(settings, source=source)

    await pipeline.coordinator.bootstrap()
    await _settle(pipeline)
    for _ in range(3):
        await _cycle(pipeline)

    view = pipeline.cache.read()
    [appeared] = view.appeared
    [conquered] = view.conquered
    [departed] = view.departed
    assert (appeared.owner_name, appeared.alliance_name) == ("leonidas", "Sparta")
    assert appeared.occurred_at == t0 + hour
    assert (conquered.owner_name, conquered.alliance_name) == ("pericles", "Athens")
    assert conquered.occurred_at == t0 + 3 * hour
    assert departed.name == "leonidas"
    assert pipeline.cache.version == 4


@pytest.mark.asyncio
async def test_outage_is_retried_and_then_diffed_against_old_baseline(
    settings, scripted_source, snapshot_factory, make_town, make_player, t0, hour
):
    players = [make_player(3)]
    source = scripted_source(
        [
            snapshot_factory(t0, players=players, towns=[make_town(7, 3)]),
            SourceError("towns", "503 Service Unavailable"),
            snapshot_factory(t0 + hour, players=[], towns=[make_town(7, 99)]),
            snapshot_factory(t0 + 2 * hour, players=players, towns=[make_town(7, None)]),
        ]
    )
    pipeline = build_pipeline(settings, source=source)

    await pipeline.coordinator.bootstrap()
    await _settle(pipeline)
    await _cycle(pipeline)

    assert source.fetches == 4
    assert pipeline.cache.read().counts()[EventKind.TERRITORY_APPEARED] == 1
    assert pipeline.coordinator.baseline.captured_at == t0 + 2 * hour


@pytest.mark.asyncio
async def test_warm_restart_resumes_from_persisted_baseline(
    settings, scripted_source, snapshot_factory, make_town, make_player, t0, hour
):
    players = [make_player(3)]
    first_run = build_pipeline(
        settings,
        source=scripted_source(
            [
                snapshot_factory(t0, players=players, towns=[make_town(7, 3)]),
                snapshot_factory(t0 + hour, players=players, towns=[make_town(7, None)]),
            ]
        ),
    )
    await first_run.coordinator.bootstrap()
    await _settle(first_run)
    await _cycle(first_run)

    restarted_source = scripted_source(
        [snapshot_factory(t0 + 2 * hour, players=players, towns=[make_town(7, 3)])]
    )
    second_run = build_pipeline(settings, source=restarted_source)
    await second_run.coordinator.bootstrap()
    await _settle(second_run)

    assert restarted_source.fetches == 0
    assert second_run.coordinator.baseline.captured_at == t0 + hour
    assert second_run.cache.read().counts()[EventKind.TERRITORY_APPEARED] == 1

    await _cycle(second_run)

    view = second_run.cache.read()
    assert len(view.appeared) == 1
    assert len(view.conquered) == 1


@pytest.mark.asyncio
async def test_crash_right_after_commit_does_not_repeat_events(
    settings, scripted_source, snapshot_factory, make_town, make_player, t0, hour
):
    """The baseline is durable with the events, so a restart never re-diffs committed changes."""
    players = [make_player(3)]
    first_run = build_pipeline(
        settings,
        source=scripted_source(
            [
                snapshot_factory(t0, players=players, towns=[make_town(7, 3)]),
                snapshot_factory(t0 + hour, players=players, towns=[make_town(7, None)]),
            ]
        ),
    )
    await first_run.coordinator.bootstrap()
    await _settle(first_run)
    await first_run.coordinator.run_cycle()
    await first_run.persistence.drain()
    # The process dies here: the view was never presented and nothing was closed.

    second_run = build_pipeline(
        settings,
        source=scripted_source(
            [snapshot_factory(t0 + 2 * hour, players=players, towns=[make_town(7, None)])]
        ),
    )
    await second_run.coordinator.bootstrap()
    await _settle(second_run)
    await _cycle(second_run)

    assert second_run.coordinator.baseline.captured_at == t0 + 2 * hour
    [appeared] = second_run.cache.read().appeared
    assert appeared.occurred_at == t0 + hour
    assert second_run.store.latest().counts()[EventKind.TERRITORY_APPEARED] == 1
