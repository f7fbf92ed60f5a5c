from __future__ import annotations

import datetime
from contextlib import asynccontextmanager

import httpx
import uvicorn
from fastapi import FastAPI

from floorwatch.api.routes import router
from floorwatch.cache import Clock, SnapshotCache, utc_now
from floorwatch.config.settings import Settings, settings as default_settings
from floorwatch.logging_config import configure_logging
from floorwatch.providers.aggregator import refresh_snapshot


def create_app(
    config: Settings = default_settings,
    transport: httpx.AsyncBaseTransport | None = None,
    clock: Clock = utc_now,
) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging(config.log_level, config.log_serialize)
        async with httpx.AsyncClient(
            timeout=config.request_timeout_seconds,
            transport=transport,
            headers={"User-Agent": "floorwatch/0.1"},
        ) as client:

            async def refresher(now: datetime.datetime):
                return await refresh_snapshot(client, now, config)

            app.state.cache = SnapshotCache(refresher, config.cache_ttl_seconds, clock)
            yield

    app = FastAPI(title="floorwatch", lifespan=lifespan)
    app.include_router(router)
    return app


app = create_app()


def run() -> None:
    uvicorn.run("floorwatch.main:app", host="0.0.0.0", port=8000)
