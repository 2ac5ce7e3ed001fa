# =============================================================================
# FastAPI Application - Entry Point
# =============================================================================
#
# Run locally:
#   uvicorn studentqa.main:app --reload
#
# The lifespan builds the service Container from Settings, creates the
# tables when STORAGE_BACKEND=sql, and runs the OTP sweep and question
# retention cleanup as background asyncio tasks for the lifetime of the
# process.
# =============================================================================

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from studentqa.api import auth, dashboard, questions
from studentqa.config import settings
from studentqa.container import build_container
from studentqa.models.responses import HealthResponse

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.storage_backend == "sql":
        from studentqa.db.engine import (
            create_all_tables,
            dispose_async_engine,
            get_async_engine,
        )

        await create_all_tables(get_async_engine(settings.database_url))

    container = build_container(settings)
    app.state.container = container
    container.start_background_tasks()
    logger.info("%s v%s started", settings.app_name, settings.app_version)

    try:
        yield
    finally:
        await container.stop_background_tasks()
        if settings.storage_backend == "sql":
            await dispose_async_engine()
        logger.info("%s stopped", settings.app_name)


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description=(
        "Phone-OTP signup/login, question submission with automatic "
        "categorisation and answers, and a per-user dashboard."
    ),
    lifespan=lifespan,
)

app.include_router(auth.router)
app.include_router(questions.router)
app.include_router(dashboard.router)


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health() -> HealthResponse:
    return HealthResponse(
        version=settings.app_version,
        service=settings.app_name,
        storage_backend=settings.storage_backend,
        llm_backend=settings.llm_backend,
    )
