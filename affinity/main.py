from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from affinity.core.config import settings
from affinity.core.log import configure_logging
from affinity.routers import activity, health
from affinity.services.activity import get_activity_service

logger = logging.getLogger("affinity")
configure_logging(settings.log_level)

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    service = get_activity_service()
    try:
        await service.ensure_indexes()
    except Exception as e:
        logger.warning("[startup] Index creation failed: %s", e)
    logger.info("[startup] Item weights service is up; store backend: %s", settings.store_backend)

    yield

app = FastAPI(
    title="User Item Affinity Service",
    version="0.1.0",
    lifespan=lifespan,
)

app.include_router(health.router)
app.include_router(activity.router)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("affinity.main:app", host="127.0.0.1", port=settings.port, reload=True)
