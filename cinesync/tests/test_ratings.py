"""
Tests for movie reviews and the rating aggregate.
"""

from unittest.mock import MagicMock, patch

import pytest

from cinesync.exceptions import (
    DuplicateReview,
    InvalidInput,
    NotAuthenticated,
    ResourceNotFound,
    StoreError,
)
from cinesync.services import RatingService
from cinesync.services.ratings import apply_score, review_id_for
from cinesync.session import SessionUser


def aggregate(store, movie_id):
    doc = store.get(store.paths.movie(movie_id))
    return doc.get("avgRating"), doc.get("reviewCount")


def user(user_id):
    return SessionUser(id=user_id, display_name=user_id.title(), created_at="2024-01-01")


class TestSubmitReview:
    """Review submission and incremental aggregate."""

    def test_scenario_incremental_average(self, store, seed, alice):
        """The cached average folds in each new score."""
        seed.movie("m1", avg_rating=4.0, review_count=2)
        service = RatingService(store)

        result = service.submit_review("m1", alice, 5)
        assert result.review_count == 3
        assert result.avg_rating == pytest.approx(13 / 3)
        avg, count = aggregate(store, "m1")
        assert avg == pytest.approx(4.3333, abs=1e-4)
        assert count == 3

        with pytest.raises(DuplicateReview):
            service.submit_review("m1", alice, 1)
        assert aggregate(store, "m1") == (avg, count)

    def test_review_id_is_deterministic(self, store, seed, alice):
        """The review is stored at the id derived from movie and user."""
        seed.movie("m1")
        RatingService(store).submit_review("m1", alice, 4, "Great")
        review = store.get(store.paths.review(review_id_for("m1", "alice")))
        assert review.get("score") == 4
        assert review.get("text") == "Great"

    def test_review_under_generated_id_still_counts(self, store, seed, alice):
        """An older review under a generated id blocks a second one."""
        seed.movie("m1")
        store.create(store.paths.reviews(), {"movieId": "m1", "userId": "alice", "score": 3})
        with pytest.raises(DuplicateReview):
            RatingService(store).submit_review("m1", alice, 4)

    def test_underscore_ids_do_not_collide(self, store, seed):
        """(a_b, c) and (a, b_c) are separate reviews."""
        seed.movie("a_b")
        seed.movie("a")
        service = RatingService(store)

        service.submit_review("a_b", user("c"), 5)
        service.submit_review("a", user("b_c"), 2)

        assert review_id_for("a_b", "c") != review_id_for("a", "b_c")
        assert service.has_reviewed("a_b", user("c"))
        assert service.has_reviewed("a", user("b_c"))
        assert not service.has_reviewed("a", user("c"))
        assert aggregate(store, "a") == (2, 1)

    def test_has_reviewed_checks_owner_fields(self, store, seed, alice):
        """A document at the derived id counts only if it belongs to the pair."""
        seed.movie("m1")
        store.create(
            store.paths.reviews(),
            {"movieId": "m2", "userId": "alice", "score": 3},
            doc_id=review_id_for("m1", "alice"),
        )
        assert not RatingService(store).has_reviewed("m1", alice)

    @pytest.mark.parametrize("scores", [
        [1, 5],
        [3, 3, 3],
        [5, 4.5, 1, 2, 2.5],
    ])
    def test_average_within_score_bounds(self, store, seed, scores):
        """The average stays within the accepted scores."""
        seed.movie("m1")
        service = RatingService(store)
        for i, score in enumerate(scores):
            result = service.submit_review("m1", user(f"user{i}"), score)
            accepted = scores[:i + 1]
            assert min(accepted) - 1e-9 <= result.avg_rating <= max(accepted) + 1e-9
        assert result.avg_rating == pytest.approx(sum(scores) / len(scores))

    @pytest.mark.parametrize("score", [0, 5.5, -1, "abc"])
    def test_score_out_of_range(self, store, seed, alice, score):
        """Scores outside 1 to 5 are invalid."""
        seed.movie("m1")
        with pytest.raises(InvalidInput):
            RatingService(store).submit_review("m1", alice, score)

    def test_missing_movie(self, store, alice):
        """Reviewing an unknown movie is not found."""
        with pytest.raises(ResourceNotFound):
            RatingService(store).submit_review("ghost", alice, 3)

    def test_anonymous_makes_no_store_call(self, store):
        """Anonymous reviews are refused before touching the store."""
        mock_store = MagicMock(wraps=store)
        mock_store.paths = store.paths
        with pytest.raises(NotAuthenticated):
            RatingService(mock_store).submit_review("m1", None, 3)
        mock_store.get.assert_not_called()
        mock_store.create.assert_not_called()

    def test_aggregate_failure_keeps_review(self, store, seed, alice, caplog):
        """A failed aggregate update keeps the review and raises."""
        seed.movie("m1", avg_rating=4.0, review_count=2)
        service = RatingService(store)

        with patch.object(store, "upsert", side_effect=StoreError("unavailable")):
            with pytest.raises(StoreError):
                service.submit_review("m1", alice, 5)

        assert service.has_reviewed("m1", alice)
        assert aggregate(store, "m1") == (4.0, 2)
        assert "aggregate update failed" in caplog.text


class TestAggregateHelpers:
    """apply_score, recompute and batch lookups."""

    def test_apply_score_from_empty(self):
        """The first score becomes the average."""
        assert apply_score(0.0, 0, 4) == (4.0, 1)

    def test_recompute_from_reviews(self, store, seed):
        """Recompute rebuilds the aggregate from stored reviews."""
        seed.movie("m1", avg_rating=1.0, review_count=10)
        for user_id, score in (("u1", 2), ("u2", 4)):
            store.create(
                store.paths.reviews(),
                {"movieId": "m1", "userId": user_id, "score": score},
                doc_id=review_id_for("m1", user_id),
            )

        result = RatingService(store).recompute("m1")
        assert (result.avg_rating, result.review_count) == (3.0, 2)
        assert aggregate(store, "m1") == (3.0, 2)

    def test_recompute_without_reviews(self, store, seed):
        """No reviews gives a zero aggregate."""
        seed.movie("m1", avg_rating=4.5, review_count=3)
        result = RatingService(store).recompute("m1")
        assert (result.avg_rating, result.review_count) == (0.0, 0)

    def test_rated_movie_ids(self, store, seed, alice):
        """Only the reviewed ids are returned."""
        for movie_id in ("m1", "m2", "m3"):
            seed.movie(movie_id)
        service = RatingService(store)
        service.submit_review("m1", alice, 4)
        service.submit_review("m3", alice, 2)

        assert service.rated_movie_ids(alice, ["m1", "m2"]) == {"m1"}
        assert service.rated_movie_ids(None, ["m1"]) == set()

    def test_list_reviews(self, store, seed, alice, bob):
        """Every review for a movie is listed."""
        seed.movie("m1")
        service = RatingService(store)
        service.submit_review("m1", alice, 4)
        service.submit_review("m1", bob, 2)
        assert {r.user_id for r in service.list_reviews("m1")} == {"alice", "bob"}
