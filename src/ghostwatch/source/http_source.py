"""HTTP Snapshot Source backed by httpx.

Fetches the four world resources concurrently through one shared
``httpx.AsyncClient`` and parses them into a Snapshot.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import UTC, datetime

import httpx
from loguru import logger

from ghostwatch.core.snapshot import Offset, Snapshot
from ghostwatch.source.errors import SourceError
from ghostwatch.source.parser import build_snapshot

RESOURCES = ("alliances", "players", "towns", "islands")
DEFAULT_BASE_URL = "https://{world}.grepolis.com/data/"
DEFAULT_USER_AGENT = "ghostwatch/0.1 (ghost town tracker)"


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


class HttpSnapshotSource:
    """Snapshot Source reading ``<base_url><resource>.txt`` for each resource.

    Args:
        world: World identifier substituted into ``base_url``.
        offsets: Static offset table attached to every snapshot.
        base_url: URL template with a ``{world}`` placeholder.
        user_agent: User-Agent header value.
        timeout: Per-request timeout in seconds.
        client: Pre-built client (tests inject one with a mock transport).
        clock: Returns the capture timestamp.
    """

    def __init__(
        self,
        world: str,
        offsets: dict[int, Offset],
        base_url: str = DEFAULT_BASE_URL,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._world = world
        self._offsets = dict(offsets)
        self._base_url = base_url.format(world=world)
        self._clock = clock
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=timeout,
            headers={"User-Agent": user_agent, "Accept-Encoding": "gzip, deflate"},
            follow_redirects=True,
        )

    def url_for(self, resource: str) -> str:
        return f"{self._base_url}{resource}.txt"

    async def _download(self, resource: str) -> str:
        url = self.url_for(resource)
        try:
            response = await self._client.get(url)
            logger.info("Got status {} for url {}", response.status_code, url)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise SourceError(resource, str(e) or type(e).__name__) from e
        return response.text

    async def fetch(self) -> Snapshot:
        """Download all resources concurrently and parse them.

        The first failed download cancels the others.

        Raises:
            SourceError: If any download fails.
            RecordParseError: If any resource is malformed.
        """
        captured_at = self._clock()
        try:
            async with asyncio.TaskGroup() as tg:
                tasks = {
                    resource: tg.create_task(self._download(resource), name=resource)
                    for resource in RESOURCES
                }
        except ExceptionGroup as group:
            raise group.exceptions[0]
        data = {resource: task.result() for resource, task in tasks.items()}
        snapshot = build_snapshot(captured_at, offsets=self._offsets, **data)
        logger.debug("Fetched {} for world {}", snapshot, self._world)
        return snapshot

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
