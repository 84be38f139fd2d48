# =============================================================================
# FastAPI Application — Entry Point
# =============================================================================
#
# Run locally:
#   uvicorn lifedesk.main:app --reload
#
# STARTUP (lifespan):
#   1. Configure the root logger from settings.log_level
#   2. Create missing tables when AUTO_CREATE_TABLES is true (no migrations)
#
# Interactive API docs are served at /docs.
# =============================================================================

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from lifedesk.api import chat, dashboard, documents, events, finance, goals, notes, todos
from lifedesk.config import settings
from lifedesk.db.engine import create_tables
from lifedesk.models.responses import HealthResponse

logger = logging.getLogger(__name__)


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(
        level=(level or settings.log_level).upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    if settings.auto_create_tables:
        logger.info("Creating database tables (if missing)")
        await create_tables()
    logger.info("%s %s started", settings.app_name, settings.app_version)
    yield


app = FastAPI(
    title=settings.app_name,
    description=(
        "Personal productivity backend: document-grounded chat assistant, "
        "todos, calendar, notes, goals and habits, finance and a dashboard."
    ),
    version=settings.app_version,
    debug=settings.debug,
    lifespan=lifespan,
)


@app.get("/health", response_model=HealthResponse, tags=["System"])
async def health() -> HealthResponse:
    return HealthResponse(version=settings.app_version, service=settings.app_name)


app.include_router(chat.router)
app.include_router(documents.router)
app.include_router(todos.router)
app.include_router(events.router)
app.include_router(notes.router)
app.include_router(goals.router)
app.include_router(finance.router)
app.include_router(dashboard.router)
