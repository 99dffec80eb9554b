"""Read-only HTTP surface over the Presentation Cache.

Endpoints:
- GET /             -> plain-text summary of cached event counts
- GET /api/summary  -> counts as JSON
- GET /api/events   -> full cached view
- GET /health       -> liveness and last refresh time

Usage:
    app = create_app(cache)
    uvicorn.run(app, host="::", port=10204)
"""

from __future__ import annotations

from typing import Any

from fastapi import FastAPI, Query
from fastapi.responses import PlainTextResponse
from loguru import logger
from pydantic import BaseModel

from ghostwatch.core.events import EventKind
from ghostwatch.web.cache import PresentationCache


class SummaryResponse(BaseModel):
    territory_appeared: int
    territory_conquered: int
    occupant_departed: int
    refreshed_at: str | None = None


def create_app(cache: PresentationCache) -> FastAPI:
    """Build the FastAPI app bound to ``cache``."""
    app = FastAPI(
        title="ghostwatch",
        version="0.1.0",
        description="Recent ghost town and player departure events",
    )

    @app.get("/", response_class=PlainTextResponse)
    async def index() -> str:
        logger.debug("Serving summary request")
        return cache.read().summary()

    @app.get("/api/summary", response_model=SummaryResponse)
    async def summary() -> SummaryResponse:
        view = cache.read()
        counts = view.counts()
        return SummaryResponse(
            territory_appeared=counts[EventKind.TERRITORY_APPEARED],
            territory_conquered=counts[EventKind.TERRITORY_CONQUERED],
            occupant_departed=counts[EventKind.OCCUPANT_DEPARTED],
            refreshed_at=view.refreshed_at.isoformat() if view.refreshed_at else None,
        )

    @app.get("/api/events")
    async def events(
        kind: EventKind | None = Query(default=None, description="Restrict to one kind"),
    ) -> dict[str, Any]:
        data = cache.read().to_dict()
        if kind is not None:
            data["events"] = {kind.value: data["events"][kind.value]}
        return data

    @app.get("/health")
    async def health() -> dict[str, Any]:
        view = cache.read()
        return {
            "status": "online",
            "refreshed_at": view.refreshed_at.isoformat() if view.refreshed_at else None,
            "version": cache.version,
        }

    return app
