"""Consumer stages: persistence and presentation.

Each stage reads one channel in order. The persistence stage commits a
change set together with its snapshot as the warm-restart baseline, then
refreshes the aggregate view and forwards it. Any persistence failure
escapes ``run()`` as a FatalPipelineError.
"""

from __future__ import annotations

import asyncio

from loguru import logger

from ghostwatch.pipeline.models import PublishRequest
from ghostwatch.store import DEFAULT_VIEW_LIMIT, EventStore, LatestView
from ghostwatch.web.cache import PresentationCache


class PersistenceStage:
    """Applies change sets to the Event Store in production order.

    Args:
        store: Durable Event Store.
        inbox: Channel from the coordinator.
        outbox: Channel to the presentation stage.
        view_limit: Events per kind in the refreshed view.
    """

    def __init__(
        self,
        store: EventStore,
        inbox: asyncio.Queue[PublishRequest],
        outbox: asyncio.Queue[LatestView],
        view_limit: int = DEFAULT_VIEW_LIMIT,
    ) -> None:
        self._store = store
        self._inbox = inbox
        self._outbox = outbox
        self._view_limit = view_limit
        self._applied = 0

    @property
    def applied(self) -> int:
        """Requests fully processed."""
        return self._applied

    async def apply(self, request: PublishRequest) -> LatestView:
        """Commit events and baseline, then refresh the view and forward it.

        Raises:
            PersistenceError: If any step fails.
        """
        changeset = request.changeset
        written = await asyncio.to_thread(
            self._store.append, changeset, request.snapshot.snapshot
        )
        if written:
            logger.info("Committed {}", changeset)
        view = await asyncio.to_thread(self._store.latest, self._view_limit)
        self._outbox.put_nowait(view)
        self._applied += 1
        return view

    async def drain(self) -> int:
        """Process every queued request without waiting for more."""
        processed = 0
        while not self._inbox.empty():
            request = self._inbox.get_nowait()
            try:
                await self.apply(request)
            finally:
                self._inbox.task_done()
            processed += 1
        return processed

    async def run(self) -> None:
        """Consume forever."""
        while True:
            request = await self._inbox.get()
            try:
                await self.apply(request)
            finally:
                self._inbox.task_done()


class PresentationStage:
    """Installs each refreshed view into the Presentation Cache.

    Args:
        cache: Cache served to HTTP readers.
        inbox: Channel from the persistence stage.
    """

    def __init__(self, cache: PresentationCache, inbox: asyncio.Queue[LatestView]) -> None:
        self._cache = cache
        self._inbox = inbox

    def install(self, view: LatestView) -> None:
        self._cache.install(view)
        logger.debug("Presentation view updated: {}", view.summary())

    async def drain(self) -> int:
        """Install every queued view without waiting for more."""
        processed = 0
        while not self._inbox.empty():
            self.install(self._inbox.get_nowait())
            self._inbox.task_done()
            processed += 1
        return processed

    async def run(self) -> None:
        """Consume forever."""
        while True:
            view = await self._inbox.get()
            self.install(view)
            self._inbox.task_done()
