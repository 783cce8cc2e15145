"""
Configuration and application state management.
"""

import os
from pathlib import Path
from typing import TYPE_CHECKING

from dotenv import load_dotenv
from fastapi import HTTPException

if TYPE_CHECKING:
    from .store import DocumentStore
    from .tasks import ReconciliationScheduler

# Load environment variables
load_dotenv()


def _parse_bool(value: str | None, default: bool = False) -> bool:
    """Parse boolean from environment variable."""
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes", "on")


class Config:
    """Application configuration from environment."""
    STORE_PATH: Path = Path(os.getenv("STORE_PATH", "./data/cinesync.db"))

    # Every document path lives under this root
    STORE_NAMESPACE: str = os.getenv("STORE_NAMESPACE", "artifacts/default-app-id")

    PORT: int = int(os.getenv("PORT", "5005"))
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Listing page sizes
    NEWS_PAGE_SIZE: int = int(os.getenv("NEWS_PAGE_SIZE", "12"))
    MOVIES_PAGE_SIZE: int = int(os.getenv("MOVIES_PAGE_SIZE", "20"))

    # Signed session tokens
    SESSION_SECRET: str = os.getenv("SESSION_SECRET", "")
    SESSION_MAX_AGE: int = int(os.getenv("SESSION_MAX_AGE", str(60 * 60 * 24 * 7)))
    COOKIE_SECURE: bool = _parse_bool(os.getenv("COOKIE_SECURE"), default=True)

    # Enables POST /auth/session; leave off in production
    ALLOW_DEV_SESSIONS: bool = _parse_bool(os.getenv("ALLOW_DEV_SESSIONS"), default=False)

    # X-API-Key for maintenance endpoints; unset allows all (local dev)
    ADMIN_API_KEY: str = os.getenv("ADMIN_API_KEY", "")

    RATE_LIMIT_PER_MINUTE: int = int(os.getenv("RATE_LIMIT_PER_MINUTE", "60"))

    # Periodic counter/aggregate reconciliation, 0 disables
    RECONCILE_INTERVAL_MINUTES: int = int(os.getenv("RECONCILE_INTERVAL_MINUTES", "0"))

    def sessions_enabled(self) -> bool:
        """Check if session tokens can be issued and verified."""
        return bool(self.SESSION_SECRET)


config = Config()


class AppState:
    """Shared application state."""
    store: "DocumentStore | None" = None
    scheduler: "ReconciliationScheduler | None" = None


state = AppState()


def get_store() -> "DocumentStore":
    """Dependency to get the document store instance."""
    if not state.store:
        raise HTTPException(status_code=500, detail="Document store not initialized")
    return state.store
