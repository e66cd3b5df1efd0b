"""Fellowship API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map FellowshipError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database initialized on startup via lifespan context manager

Design Decisions:
    - Lifespan over @app.on_event: cleaner startup/cleanup pairing
    - Error handlers live in api/error_handlers.py to keep this module's
      import fan-out small
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from fellowship import __version__
from fellowship.api.error_handlers import register_error_handlers
from fellowship.api.routes import accounts, admin, entities, health, notifications
from fellowship.config import get_settings
from fellowship.infrastructure import database as db_module
from fellowship.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    db_module.init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    logger.info("Fellowship API started")
    yield
    if db_module.db_manager:
        await db_module.db_manager.dispose()
    logger.info("Fellowship API shutting down")


app = FastAPI(
    title="Fellowship Finder API", version=__version__, lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(accounts.router)
app.include_router(entities.router)
app.include_router(notifications.router)
app.include_router(admin.router)

register_error_handlers(app)
