"""fitchallenge FastAPI application."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from fitchallenge.api import admin, challenges, health, profiles
from fitchallenge.core.config import settings
from fitchallenge.db.session import SessionLocal
from fitchallenge.jobs.expiry_sweeper import sweep_forever

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    sweeper: asyncio.Task | None = None
    if settings.sweep_enabled:
        sweeper = asyncio.create_task(sweep_forever(SessionLocal, settings.sweep_interval_seconds))
        logger.info("expiry sweep started interval=%ss", settings.sweep_interval_seconds)

    yield

    if sweeper is not None:
        sweeper.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sweeper


app = FastAPI(
    title=settings.app_name,
    debug=settings.debug,
    lifespan=lifespan,
)

app.include_router(health.router)
app.include_router(challenges.router)
app.include_router(admin.router)
app.include_router(profiles.router)
