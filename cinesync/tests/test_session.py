"""
Tests for session tokens and the session routes.
"""

from unittest.mock import MagicMock

import pytest
from itsdangerous import URLSafeTimedSerializer

from cinesync.config import config
from cinesync.session import SESSION_COOKIE, create_session_token, get_session


def request_with(headers=None, cookies=None):
    request = MagicMock()
    request.headers = headers or {}
    request.cookies = cookies or {}
    return request


@pytest.fixture
def session_secret():
    original = config.SESSION_SECRET
    config.SESSION_SECRET = "unit-test-secret"
    yield config.SESSION_SECRET
    config.SESSION_SECRET = original


class TestTokens:
    """Signing and verifying session tokens."""

    def test_bearer_token(self, session_secret):
        """A Bearer token identifies the user."""
        token = create_session_token("alice", "Alice")
        user = get_session(request_with(headers={"Authorization": f"Bearer {token}"}))
        assert user.id == "alice"
        assert user.display_name == "Alice"

    def test_cookie_token(self, session_secret):
        """The session cookie identifies the user."""
        token = create_session_token("bob")
        user = get_session(request_with(cookies={SESSION_COOKIE: token}))
        assert user.id == "bob"
        assert user.display_name is None

    def test_tampered_token_is_anonymous(self, session_secret):
        """A tampered token is treated as anonymous."""
        token = create_session_token("alice") + "x"
        assert get_session(request_with(headers={"Authorization": f"Bearer {token}"})) is None

    def test_token_from_other_secret_rejected(self, session_secret):
        """Tokens signed with another secret are rejected."""
        forged = URLSafeTimedSerializer("other-secret", salt="cinesync-session").dumps(
            {"id": "alice", "created_at": "2024-01-01"}
        )
        assert get_session(request_with(cookies={SESSION_COOKIE: forged})) is None

    def test_sessions_disabled_without_secret(self):
        """No secret means no sessions."""
        original = config.SESSION_SECRET
        config.SESSION_SECRET = ""
        try:
            assert get_session(request_with(headers={"Authorization": "Bearer anything"})) is None
        finally:
            config.SESSION_SECRET = original


class TestSessionRoutes:
    """/auth endpoints."""

    def test_status_anonymous(self, client):
        """Status without a session has no user."""
        response = client.get("/auth/status")
        assert response.status_code == 200
        assert response.json() == {"enabled": True, "user_id": None, "display_name": None}

    def test_status_signed_in(self, client, auth_headers):
        """Status with a session names the user."""
        response = client.get("/auth/status", headers=auth_headers("alice", "Alice"))
        assert response.json()["user_id"] == "alice"

    def test_dev_session_disabled_by_default(self, client):
        """Dev sessions are off unless enabled."""
        response = client.post("/auth/session", json={"user_id": "alice"})
        assert response.status_code == 404

    def test_dev_session_issues_cookie(self, client):
        """A dev session sets the session cookie."""
        original = config.ALLOW_DEV_SESSIONS
        config.ALLOW_DEV_SESSIONS = True
        try:
            response = client.post("/auth/session", json={"user_id": "alice", "display_name": "Alice"})
        finally:
            config.ALLOW_DEV_SESSIONS = original

        assert response.status_code == 200
        token = response.json()["token"]
        assert response.headers["set-cookie"].startswith(f"{SESSION_COOKIE}={token}")
        status = client.get("/auth/status", headers={"Authorization": f"Bearer {token}"})
        assert status.json()["display_name"] == "Alice"
