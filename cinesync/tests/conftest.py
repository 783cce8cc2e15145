"""
Pytest fixtures for engagement backend tests.
"""

import os
import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from cinesync.config import config, state
from cinesync.rate_limit import limiter
from cinesync.server import app
from cinesync.session import SessionUser, create_session_token
from cinesync.store import SQLiteDocumentStore

TEST_NAMESPACE = "artifacts/test-app"
TEST_SECRET = "test-secret-for-signing-sessions"

PAST = datetime(2024, 1, 1, tzinfo=timezone.utc)


class Seeder:
    """Writes fixture documents straight into a store."""

    def __init__(self, store):
        self.store = store
        self.paths = store.paths

    def article(
        self,
        article_id: str,
        title: str = "Article",
        category: str = "Bollywood",
        scheduled_at: datetime | None = None,
        likes: int = 0,
        dislikes: int = 0,
        **extra,
    ) -> str:
        self.store.upsert(self.paths.article(article_id), {
            "title": title,
            "content": f"Body of {title}",
            "category": category,
            "scheduledAt": scheduled_at or PAST,
            "likesCount": likes,
            "dislikesCount": dislikes,
            **extra,
        }, merge=False)
        return article_id

    def movie(
        self,
        movie_id: str,
        title: str = "Movie",
        industry: str = "Bollywood",
        genre: list[str] | None = None,
        release_date: datetime | None = None,
        scheduled_at: datetime | None = None,
        avg_rating: float = 0.0,
        review_count: int = 0,
    ) -> str:
        self.store.upsert(self.paths.movie(movie_id), {
            "title": title,
            "poster": f"https://img.example.com/{movie_id}.jpg",
            "industry": industry,
            "genre": genre or ["Drama"],
            "releaseDate": release_date or PAST,
            "scheduledAt": scheduled_at or PAST,
            "avgRating": avg_rating,
            "reviewCount": review_count,
        }, merge=False)
        return movie_id

    def profile(self, user_id: str, **fields) -> str:
        self.store.upsert(self.paths.user(user_id), fields, merge=False)
        return user_id


@pytest.fixture
def temp_db_path():
    """Create a temporary database file path."""
    with tempfile.NamedTemporaryFile(suffix=".db", delete=False) as f:
        yield Path(f.name)
    # Cleanup
    if os.path.exists(f.name):
        os.unlink(f.name)


@pytest.fixture
def store(temp_db_path):
    """Create a test document store."""
    test_store = SQLiteDocumentStore(temp_db_path, namespace=TEST_NAMESPACE)
    yield test_store
    test_store.close()


@pytest.fixture
def seed(store):
    return Seeder(store)


@pytest.fixture
def alice():
    return SessionUser(id="alice", display_name="Alice", created_at=PAST.isoformat())


@pytest.fixture
def bob():
    return SessionUser(id="bob", display_name="Bob", created_at=PAST.isoformat())


@pytest.fixture
def future():
    return datetime.now(timezone.utc) + timedelta(days=30)


@pytest.fixture
def client(store):
    """Create a test client with an isolated store and sessions enabled."""
    # Store original state
    original_store = state.store
    original_scheduler = state.scheduler
    original_secret = config.SESSION_SECRET
    original_limiter_enabled = limiter.enabled

    config.SESSION_SECRET = TEST_SECRET
    state.store = store
    state.scheduler = None
    limiter.enabled = False

    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client

    # Restore original state
    state.store = original_store
    state.scheduler = original_scheduler
    config.SESSION_SECRET = original_secret
    limiter.enabled = original_limiter_enabled


@pytest.fixture
def auth_headers():
    """Build Authorization headers for a user id (needs SESSION_SECRET set)."""
    def _headers(user_id: str, display_name: str | None = None) -> dict:
        token = create_session_token(user_id, display_name)
        return {"Authorization": f"Bearer {token}"}
    return _headers
