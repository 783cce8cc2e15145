"""
Tests for the HTTP API.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import patch

import pytest

from cinesync.config import config
from cinesync.exceptions import StoreError


class TestMisc:
    """Health check, promotions and maintenance."""

    def test_status(self, client):
        """Status reports the app readiness flags."""
        response = client.get("/status")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["store_ready"] is True
        assert data["sessions_enabled"] is True
        assert data["reconciler_running"] is False

    def test_promotion_without_sign_in(self, client):
        """Promotion inquiries need no session."""
        response = client.post("/promotions", json={
            "name": "Ana",
            "email": "ana@example.com",
            "message": "We would like a banner slot",
        })
        assert response.status_code == 201
        assert response.json()["id"]

    def test_promotion_validation(self, client):
        """An empty email fails validation."""
        response = client.post("/promotions", json={"name": "Ana", "email": "", "message": "x"})
        assert response.status_code == 422

    def test_reconcile_open_without_admin_key(self, client, seed):
        """Reconcile runs when no admin key is configured."""
        seed.article("a1", likes=3)
        response = client.post("/admin/reconcile")
        assert response.status_code == 200
        assert response.json()["articles_fixed"] == ["a1"]

    def test_reconcile_requires_configured_key(self, client):
        """A configured admin key must be presented."""
        original = config.ADMIN_API_KEY
        config.ADMIN_API_KEY = "admin-key-12345"
        try:
            assert client.post("/admin/reconcile").status_code == 401
            assert client.post("/admin/reconcile", headers={"X-API-Key": "wrong"}).status_code == 401
            ok = client.post("/admin/reconcile", headers={"X-API-Key": "admin-key-12345"})
            assert ok.status_code == 200
        finally:
            config.ADMIN_API_KEY = original


class TestNews:
    """News listing, detail and reactions."""

    def test_listing_pages(self, client, seed):
        """News pages chain through next_cursor."""
        now = datetime.now(timezone.utc)
        original = config.NEWS_PAGE_SIZE
        config.NEWS_PAGE_SIZE = 2
        try:
            for i in range(3):
                seed.article(f"n{i}", title=f"Story {i}", scheduled_at=now - timedelta(hours=i + 1))
            seed.article("future", scheduled_at=now + timedelta(days=1))

            first = client.get("/news").json()
            assert [a["id"] for a in first["items"]] == ["n0", "n1"]
            assert first["has_more"] is True

            second = client.get("/news", params={"cursor": first["next_cursor"]}).json()
            assert [a["id"] for a in second["items"]] == ["n2"]
            assert second["has_more"] is False
        finally:
            config.NEWS_PAGE_SIZE = original

    def test_unknown_cursor_is_404(self, client, seed):
        """An unknown cursor is a 404."""
        seed.article("a1")
        assert client.get("/news", params={"cursor": "ghost"}).status_code == 404

    def test_article_detail_with_reaction(self, client, seed, auth_headers):
        """Article detail includes the viewer's reaction."""
        seed.article("a1", title="Hello", likes=3, dislikes=1)
        headers = auth_headers("alice", "Alice")
        client.post("/news/a1/reaction", json={"type": "like"}, headers=headers)

        detail = client.get("/news/a1", headers=headers).json()
        assert detail["title"] == "Hello"
        assert detail["user_reaction"] == "like"
        assert detail["likes_count"] == 4

        anonymous = client.get("/news/a1").json()
        assert anonymous["user_reaction"] is None

    def test_reaction_scenario(self, client, seed, auth_headers):
        """Reactions toggle and report counts."""
        seed.article("a1", likes=3, dislikes=1)
        headers = auth_headers("alice")

        steps = [("like", "like", 4, 1), ("dislike", "dislike", 3, 2), ("dislike", None, 3, 1)]
        for clicked, reaction, likes, dislikes in steps:
            response = client.post("/news/a1/reaction", json={"type": clicked}, headers=headers)
            assert response.status_code == 200
            data = response.json()
            assert (data["reaction"], data["likes_count"], data["dislikes_count"]) == (reaction, likes, dislikes)

        state = client.get("/news/a1/reaction", headers=headers).json()
        assert (state["reaction"], state["likes_count"], state["dislikes_count"]) == (None, 3, 1)

    def test_anonymous_reaction_is_401(self, client, seed):
        """Reacting without a session is a 401."""
        seed.article("a1")
        response = client.post("/news/a1/reaction", json={"type": "like"})
        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"

    def test_invalid_reaction_type(self, client, seed, auth_headers):
        """Unknown reaction types are rejected."""
        seed.article("a1")
        response = client.post("/news/a1/reaction", json={"type": "love"}, headers=auth_headers("alice"))
        assert response.status_code == 422

    def test_missing_article_is_404(self, client, auth_headers):
        """Reacting to an unknown article is a 404."""
        response = client.post("/news/ghost/reaction", json={"type": "like"}, headers=auth_headers("alice"))
        assert response.status_code == 404
        assert response.json()["detail"] == "Article not found"

    def test_store_failure_is_503(self, client, seed, store, auth_headers):
        """Store failures surface as 503."""
        seed.article("a1")
        with patch.object(store, "increment", side_effect=StoreError()):
            response = client.post("/news/a1/reaction", json={"type": "like"}, headers=auth_headers("alice"))
        assert response.status_code == 503


class TestComments:
    """Comment endpoints."""

    def test_comment_lifecycle(self, client, seed, auth_headers):
        """Post, edit, list and delete a comment."""
        seed.article("a1")
        alice = auth_headers("alice", "Alice")

        created = client.post("/news/a1/comments", json={"text": "Nice"}, headers=alice)
        assert created.status_code == 201
        comment_id = created.json()["id"]
        assert created.json()["user_name"] == "Alice"

        listed = client.get("/news/a1/comments").json()
        assert [c["id"] for c in listed] == [comment_id]

        edited = client.put(f"/comments/{comment_id}", json={"text": "Nicer"}, headers=alice)
        assert edited.status_code == 200
        assert edited.json()["text"] == "Nicer"

        mine = client.get("/me/comments", headers=alice).json()
        assert [c["text"] for c in mine] == ["Nicer"]

        assert client.delete(f"/comments/{comment_id}", headers=alice).status_code == 200
        assert client.get("/news/a1/comments").json() == []
        assert client.get("/me/comments", headers=alice).json() == []

    def test_non_author_is_403(self, client, seed, auth_headers):
        """Editing someone else's comment is a 403."""
        seed.article("a1")
        created = client.post("/news/a1/comments", json={"text": "Mine"}, headers=auth_headers("alice"))
        comment_id = created.json()["id"]

        bob = auth_headers("bob")
        assert client.put(f"/comments/{comment_id}", json={"text": "x"}, headers=bob).status_code == 403
        assert client.delete(f"/comments/{comment_id}", headers=bob).status_code == 403
        assert client.get("/news/a1/comments").json()[0]["text"] == "Mine"

    def test_anonymous_comment_is_401(self, client, seed):
        """Commenting without a session is a 401."""
        seed.article("a1")
        assert client.post("/news/a1/comments", json={"text": "Hi"}).status_code == 401
        assert client.get("/me/comments").status_code == 401


class TestMovies:
    """Movie endpoints."""

    def test_listing_with_viewer_flags(self, client, seed, auth_headers):
        """Movie listing carries the viewer's flags."""
        seed.movie("m1", title="First")
        seed.movie("m2", title="Second", release_date=datetime(2023, 5, 1, tzinfo=timezone.utc))
        headers = auth_headers("alice")
        client.post("/movies/m1/reviews", json={"score": 4}, headers=headers)
        client.post("/movies/m2/interest", headers=headers)

        movies = {m["id"]: m for m in client.get("/movies", headers=headers).json()["items"]}
        assert movies["m1"]["has_rated"] is True
        assert movies["m2"]["is_interested"] is True
        assert movies["m1"]["review_count"] == 1

    def test_rating_scenario(self, client, seed, auth_headers):
        """Reviews update the aggregate and duplicates are a 409."""
        seed.movie("m1", avg_rating=4.0, review_count=2)
        headers = auth_headers("alice")

        response = client.post("/movies/m1/reviews", json={"score": 5, "text": "Loved it"}, headers=headers)
        assert response.status_code == 201
        assert response.json()["review_count"] == 3
        assert response.json()["avg_rating"] == pytest.approx(4.3333, abs=1e-4)

        again = client.post("/movies/m1/reviews", json={"score": 1}, headers=headers)
        assert again.status_code == 409

        movie = client.get("/movies/m1").json()
        assert (movie["avg_rating"], movie["review_count"]) == (4.33, 3)
        assert len(client.get("/movies/m1/reviews").json()) == 1

    def test_unreleased_movie_is_404(self, client, seed, future):
        """Movie detail hides movies released in the future."""
        seed.movie("m2", release_date=future)
        assert client.get("/movies/m2").status_code == 404

    def test_score_out_of_range_is_422(self, client, seed, auth_headers):
        """Out-of-range scores fail validation."""
        seed.movie("m1")
        response = client.post("/movies/m1/reviews", json={"score": 6}, headers=auth_headers("alice"))
        assert response.status_code == 422

    def test_interest_toggle_and_list(self, client, seed, auth_headers):
        """Interest toggles and appears in the user's list."""
        seed.movie("m1", title="Upcoming")
        headers = auth_headers("alice")

        assert client.post("/movies/m1/interest", headers=headers).json()["interested"] is True
        interests = client.get("/me/interests", headers=headers).json()
        assert [m["movie_id"] for m in interests] == ["m1"]

        assert client.post("/movies/m1/interest", headers=headers).json()["interested"] is False
        assert client.get("/me/interests", headers=headers).json() == []

    def test_anonymous_review_is_401(self, client, seed):
        """Reviewing without a session is a 401."""
        seed.movie("m1")
        assert client.post("/movies/m1/reviews", json={"score": 3}).status_code == 401
