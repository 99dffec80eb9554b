"""Wiring of the three pipeline stages and the HTTP listener.

Usage:
    settings = PipelineSettings()
    await run_pipeline(settings)            # forever
    await run_pipeline(settings, once=True)  # bootstrap plus one cycle

Stages run as tasks of one TaskGroup and talk over unbounded FIFO queues:

    Coordinator --PublishRequest--> PersistenceStage --LatestView--> PresentationStage

A FatalPipelineError in any task cancels the others and is re-raised bare
so the top-level driver can terminate the process.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

import uvicorn
from loguru import logger

from ghostwatch.config import PipelineSettings
from ghostwatch.core.errors import FatalPipelineError
from ghostwatch.pipeline.coordinator import Coordinator
from ghostwatch.pipeline.models import BackoffPolicy, CoordinatorConfig, PublishRequest
from ghostwatch.pipeline.stages import PersistenceStage, PresentationStage
from ghostwatch.source import HttpSnapshotSource, SnapshotSource, load_offsets
from ghostwatch.store import EventStore, LatestView, SqliteEventStore
from ghostwatch.web import PresentationCache, create_app


@dataclass
class Pipeline:
    """Fully wired pipeline components."""

    coordinator: Coordinator
    persistence: PersistenceStage
    presentation: PresentationStage
    cache: PresentationCache
    source: SnapshotSource
    store: EventStore


def build_pipeline(
    settings: PipelineSettings,
    source: SnapshotSource | None = None,
    store: EventStore | None = None,
    cache: PresentationCache | None = None,
) -> Pipeline:
    """Construct every stage from settings; explicit components take precedence."""
    if source is None:
        source = HttpSnapshotSource(
            world=settings.world,
            offsets=load_offsets(settings.offsets_path),
            base_url=settings.base_url,
            user_agent=settings.user_agent,
            timeout=settings.request_timeout,
        )
    store = store or SqliteEventStore(settings.database_path)
    cache = cache or PresentationCache()

    to_persistence: asyncio.Queue[PublishRequest] = asyncio.Queue()
    to_presentation: asyncio.Queue[LatestView] = asyncio.Queue()

    config = CoordinatorConfig(
        min_capture_interval=settings.min_capture_interval,
        backoff=BackoffPolicy(interval=settings.retry_interval, jitter=settings.retry_jitter),
    )
    return Pipeline(
        coordinator=Coordinator(source, to_persistence, store, config),
        persistence=PersistenceStage(store, to_persistence, to_presentation, settings.view_limit),
        presentation=PresentationStage(cache, to_presentation),
        cache=cache,
        source=source,
        store=store,
    )


async def _serve(cache: PresentationCache, settings: PipelineSettings) -> None:
    config = uvicorn.Config(
        create_app(cache),
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
    server = uvicorn.Server(config)
    logger.info("Starting server to listen on [{}]:{}", settings.host, settings.port)
    try:
        await server.serve()
    finally:
        server.should_exit = True


async def run_once(pipeline: Pipeline) -> None:
    """Bootstrap, run one cycle, and drain both consumer stages after each step."""
    await pipeline.coordinator.bootstrap()
    await pipeline.persistence.drain()
    await pipeline.presentation.drain()
    await pipeline.coordinator.run_cycle()
    await pipeline.persistence.drain()
    await pipeline.presentation.drain()


async def run_forever(pipeline: Pipeline, settings: PipelineSettings, serve: bool = True) -> None:
    """Run all stages concurrently until a fatal error.

    Raises:
        FatalPipelineError: The first fatal error raised by any stage.
    """
    try:
        async with asyncio.TaskGroup() as tg:
            tg.create_task(pipeline.persistence.run(), name="persistence")
            tg.create_task(pipeline.presentation.run(), name="presentation")
            if serve:
                tg.create_task(_serve(pipeline.cache, settings), name="http")
            tg.create_task(pipeline.coordinator.run(), name="producer")
    except ExceptionGroup as group:
        fatal = group.subgroup(lambda e: isinstance(e, FatalPipelineError))
        if fatal is None:
            raise
        first = fatal.exceptions[0]
        while isinstance(first, ExceptionGroup):
            first = first.exceptions[0]
        raise first from group


async def run_pipeline(
    settings: PipelineSettings,
    *,
    source: SnapshotSource | None = None,
    store: EventStore | None = None,
    cache: PresentationCache | None = None,
    serve: bool = True,
    once: bool = False,
) -> Pipeline:
    """Build the pipeline and run it. Returns the pipeline when ``once`` is set."""
    pipeline = build_pipeline(settings, source=source, store=store, cache=cache)
    try:
        if once:
            await run_once(pipeline)
        else:
            await run_forever(pipeline, settings, serve=serve)
    finally:
        await pipeline.source.aclose()
        pipeline.store.close()
    return pipeline
