from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from stock_tracker.api.v1.router import api_router
from stock_tracker.core.cache import cache
from stock_tracker.core.config import settings
from stock_tracker.core.database import Base, engine
from stock_tracker.core.logging import configure_logging
from stock_tracker.services.alert_job import build_alert_scheduler

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.log_level)
    Base.metadata.create_all(bind=engine)
    await cache.connect()

    scheduler = build_alert_scheduler(settings)
    app.state.scheduler = scheduler
    if settings.alerts_enabled:
        scheduler.start()
    else:
        logger.info("Alert scheduler disabled")
    logger.info("> Ready on port %s", settings.port)

    yield

    await scheduler.stop()
    await cache.close()


app = FastAPI(
    title="Stock Tracker API",
    version="1.0.0",
    description="Market data proxy and price alert notifications.",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials="*" not in settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
def health(request: Request):
    scheduler = getattr(request.app.state, "scheduler", None)
    return {"status": "ok", "scheduler": scheduler.state.value if scheduler else None}


app.include_router(api_router, prefix=settings.api_prefix)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("stock_tracker.main:app", host="0.0.0.0", port=settings.port)
