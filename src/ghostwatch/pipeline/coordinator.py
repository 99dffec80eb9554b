"""Pipeline Coordinator: the producer stage.

Owns the baseline, drives the wait/fetch/diff cycle and hands each change
set to the persistence stage.

Usage:
    outbox: asyncio.Queue[PublishRequest] = asyncio.Queue()
    coordinator = Coordinator(source, outbox, SqliteEventStore("db.sqlite"))
    await coordinator.run()  # bootstrap, then cycle forever

A fetch or validation failure is retried forever with fixed backoff; the
candidate is discarded and the baseline stays as it was. Fatal errors
propagate to the caller.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import UTC, datetime

from loguru import logger

from ghostwatch.core.diff import diff
from ghostwatch.core.events import ChangeSet
from ghostwatch.core.snapshot import ValidSnapshot
from ghostwatch.core.validation import ValidationError, validate
from ghostwatch.pipeline.backoff import Sleep, retry_forever
from ghostwatch.pipeline.models import CoordinatorConfig, PipelineState, PublishRequest
from ghostwatch.source.protocol import SnapshotSource
from ghostwatch.store import EventStore


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class Coordinator:
    """Producer of change sets.

    Args:
        source: Where snapshots come from.
        outbox: Channel to the persistence stage.
        store: Event Store; only its persisted baseline is read, during bootstrap.
        config: Timing and backoff configuration.
        clock: Current time, timezone-aware.
        sleep: Awaitable sleep, injectable for tests.
    """

    def __init__(
        self,
        source: SnapshotSource,
        outbox: asyncio.Queue[PublishRequest],
        store: EventStore,
        config: CoordinatorConfig | None = None,
        clock: Callable[[], datetime] = _utcnow,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._source = source
        self._outbox = outbox
        self._store = store
        self._config = config or CoordinatorConfig()
        self._clock = clock
        self._sleep = sleep
        self._state = PipelineState.BOOTSTRAPPING
        self._baseline: ValidSnapshot | None = None
        self._cycles = 0

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def baseline(self) -> ValidSnapshot | None:
        return self._baseline

    @property
    def cycles(self) -> int:
        """Completed diff cycles since start."""
        return self._cycles

    def _enter(self, state: PipelineState) -> None:
        if state is not self._state:
            logger.debug("Coordinator {} -> {}", self._state.name, state.name)
        self._state = state

    async def bootstrap(self) -> ValidSnapshot:
        """Establish the first baseline.

        Uses the persisted baseline when one can be loaded and validated,
        otherwise fetches one. Either way an empty change set is published so
        the presentation view is initialized from the Event Store.
        """
        self._enter(PipelineState.BOOTSTRAPPING)
        persisted = await asyncio.to_thread(self._store.load_baseline)
        baseline: ValidSnapshot | None = None
        if persisted is not None:
            try:
                baseline = validate(persisted)
            except ValidationError as e:
                logger.error("Persisted baseline is inconsistent, refetching: {}", e)

        if baseline is None:
            baseline = await self.fetch_valid_snapshot()
            logger.info("Established baseline {}", baseline)
        else:
            logger.info("Warm restart from baseline {}", baseline)

        self._publish(ChangeSet.empty(baseline.captured_at), baseline)
        return baseline

    def seconds_until_due(self) -> float:
        """Seconds left before the minimum capture interval has elapsed."""
        if self._baseline is None:
            return 0.0
        elapsed = (self._clock() - self._baseline.captured_at).total_seconds()
        return max(0.0, self._config.min_capture_interval - elapsed)

    async def wait_for_interval(self) -> float:
        """Sleep until the next capture is due. Returns the seconds slept."""
        self._enter(PipelineState.WAITING)
        delay = self.seconds_until_due()
        if delay > 0:
            logger.info("Next capture in {:.0f}s", delay)
            await self._sleep(delay)
        return delay

    async def _fetch_and_validate(self) -> ValidSnapshot:
        self._enter(PipelineState.FETCHING)
        snapshot = await self._source.fetch()
        self._enter(PipelineState.DIFFING)
        return validate(snapshot)

    async def fetch_valid_snapshot(self) -> ValidSnapshot:
        """Fetch and validate, retrying transient failures forever."""
        return await retry_forever(self._fetch_and_validate, self._config.backoff, self._sleep)

    def _publish(self, changeset: ChangeSet, snapshot: ValidSnapshot) -> None:
        self._enter(PipelineState.PUBLISHING)
        self._outbox.put_nowait(PublishRequest(changeset=changeset, snapshot=snapshot))
        # Advanced before the persistence stage commits. A failed commit stops that
        # stage for good, so nothing diffed against an uncommitted baseline is stored.
        self._baseline = snapshot

    async def run_cycle(self) -> ChangeSet:
        """Run one wait/fetch/diff/publish cycle.

        Raises:
            RuntimeError: If called before bootstrap.
            FatalPipelineError: On an internal invariant violation.
        """
        if self._baseline is None:
            raise RuntimeError("run_cycle() called before bootstrap()")

        await self.wait_for_interval()
        candidate = await self.fetch_valid_snapshot()

        self._enter(PipelineState.DIFFING)
        changeset = diff(self._baseline, candidate)
        if changeset:
            logger.info("Detected {}", changeset)
        else:
            logger.info("No changes this time")

        self._publish(changeset, candidate)
        self._cycles += 1
        self._enter(PipelineState.WAITING)
        return changeset

    async def run(self, max_cycles: int | None = None) -> None:
        """Bootstrap, then cycle until ``max_cycles`` (forever if None)."""
        await self.bootstrap()
        try:
            while max_cycles is None or self._cycles < max_cycles:
                await self.run_cycle()
        finally:
            self._enter(PipelineState.STOPPED)
