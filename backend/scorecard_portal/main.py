"""FastAPI application entrypoint."""

from __future__ import annotations

import logging
from datetime import datetime
from zoneinfo import ZoneInfo

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from scorecard_portal.api.routes import api_router
from scorecard_portal.config import get_settings
from scorecard_portal.core.logging import setup_logging
from scorecard_portal.core.telemetry import setup_telemetry, shutdown_telemetry
from scorecard_portal.db.init import init_database
from scorecard_portal.db.session import get_engine

logger = logging.getLogger(__name__)

settings = get_settings()
app = FastAPI(title=settings.app_name, version="0.1.0")
setup_logging(settings.log_level)
uses_database = settings.scorecard_source == "database"
setup_telemetry(app, settings, engine=get_engine() if uses_database and settings.telemetry_enabled else None)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$",
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"],
    expose_headers=["traceparent", "tracestate", "x-trace-id"],
)


@app.on_event("startup")
async def startup() -> None:
    """Initialise the database schema when the service boots."""

    logger.info("Starting %s with %s", settings.app_name, settings.dict_for_logging())
    if uses_database:
        await init_database()


@app.on_event("shutdown")
async def shutdown() -> None:
    shutdown_telemetry()


@app.get("/health", tags=["health"])
async def health() -> dict[str, str]:
    """Return service readiness metadata."""

    return {
        "status": "ok",
        "timestamp": datetime.now(ZoneInfo(settings.timezone)).isoformat(),
        "timezone": settings.timezone,
        "source": settings.scorecard_source,
    }


def configure_app() -> FastAPI:
    """Attach routes."""

    app.include_router(api_router)
    return app


configure_app()

__all__ = ["app", "configure_app"]
