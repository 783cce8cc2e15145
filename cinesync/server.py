"""
CineSync Engagement API Server

FastAPI application providing endpoints for:
- News listing, reactions and comments
- Movie listing, reviews and interest markers
- Promotion inquiries
- Reconciliation of cached counters and aggregates
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from . import __version__
from .config import config, state
from .exceptions import setup_exception_handlers
from .rate_limit import setup_rate_limiting
from .routes import (
    auth_router,
    comments_router,
    misc_router,
    movies_router,
    news_router,
    users_router,
)
from .store import create_store
from .tasks import ReconciliationScheduler

logger = logging.getLogger(__name__)


def configure_logging():
    """Configure root logging from LOG_LEVEL."""
    logging.basicConfig(
        level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Initialize and cleanup application resources."""
    # Startup - skip if already initialized (e.g., by tests)
    if state.store is None:
        configure_logging()
        state.store = create_store(config.STORE_PATH, config.STORE_NAMESPACE)
        logger.info(f"Document store opened at {config.STORE_PATH} (namespace: {config.STORE_NAMESPACE})")

        if not config.sessions_enabled():
            logger.warning("SESSION_SECRET not set. All callers are anonymous; mutations will be refused.")

    if state.scheduler is None:
        state.scheduler = ReconciliationScheduler(state.store, config.RECONCILE_INTERVAL_MINUTES)
        await state.scheduler.start()

    yield

    # Shutdown
    if state.scheduler:
        await state.scheduler.stop()
        state.scheduler = None


app = FastAPI(
    title="CineSync Engagement API",
    version=__version__,
    lifespan=lifespan
)

setup_exception_handlers(app)
setup_rate_limiting(app)

# Include routers
app.include_router(misc_router)
app.include_router(auth_router)
app.include_router(news_router)
app.include_router(comments_router)
app.include_router(movies_router)
app.include_router(users_router)


def main():
    """Run the API server with uvicorn."""
    uvicorn.run("cinesync.server:app", host="0.0.0.0", port=config.PORT)
