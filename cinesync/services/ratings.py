"""
Rating aggregate: movie reviews and the cached avgRating/reviewCount.

Policy: the aggregate is maintained incrementally from the cached values
on the movie document,

    reviewCount' = reviewCount + 1
    avgRating'   = (avgRating * reviewCount + score) / reviewCount'

which needs no scan of the review set but drifts if a write is lost.
recompute() rebuilds the aggregate from the reviews and is what the
reconciliation job uses.

A review's document id is a digest of "{movieId}/{userId}". Ids never
contain "/", so distinct pairs get distinct ids, a second review by the
same user collides on create, and at most one review per (movie, user)
can exist.
"""

import hashlib
import logging

from ..exceptions import (
    DocumentExists,
    DuplicateReview,
    InvalidInput,
    NotAuthenticated,
    StoreError,
    require_movie,
)
from ..session import SessionUser
from ..store import DocumentStore, Filter
from ..store.converters import doc_to_movie, doc_to_review, utcnow
from ..store.models import RatingAggregate, Review

logger = logging.getLogger(__name__)

MIN_SCORE = 1
MAX_SCORE = 5


def review_id_for(movie_id: str, user_id: str) -> str:
    key = f"{movie_id}/{user_id}".encode("utf-8")
    return hashlib.sha256(key).hexdigest()[:40]


def apply_score(avg_rating: float, review_count: int, score: float) -> tuple[float, int]:
    """Fold one new score into a cached aggregate."""
    review_count = max(0, review_count)
    new_count = review_count + 1
    new_avg = (avg_rating * review_count + score) / new_count
    return new_avg, new_count


class RatingService:
    """Accepts movie reviews and maintains the rating aggregate."""

    def __init__(self, store: DocumentStore):
        self.store = store
        self.paths = store.paths

    def submit_review(
        self,
        movie_id: str,
        user: SessionUser | None,
        score: float,
        text: str | None = None,
    ) -> RatingAggregate:
        """
        Record a user's review and fold it into the movie's aggregate.

        Raises:
            NotAuthenticated: anonymous caller
            InvalidInput: score outside 1..5
            ResourceNotFound: the movie does not exist
            DuplicateReview: the user already reviewed this movie
            StoreError: a store call failed
        """
        if user is None:
            raise NotAuthenticated("Please login to rate movies")
        try:
            score = float(score)
        except (TypeError, ValueError):
            raise InvalidInput("Score must be a number")
        if not MIN_SCORE <= score <= MAX_SCORE:
            raise InvalidInput(f"Score must be between {MIN_SCORE} and {MAX_SCORE}")

        movie_path = self.paths.movie(movie_id)
        movie = doc_to_movie(require_movie(self.store.get(movie_path)))

        if self.has_reviewed(movie_id, user):
            raise DuplicateReview()

        review_id = review_id_for(movie_id, user.id)
        try:
            self.store.create(
                self.paths.reviews(),
                {
                    "movieId": movie_id,
                    "userId": user.id,
                    "userName": user.display_name,
                    "score": score,
                    "text": (text or "").strip() or None,
                    "createdAt": utcnow(),
                },
                doc_id=review_id,
            )
        except DocumentExists:
            raise DuplicateReview()

        avg_rating, review_count = apply_score(movie.avg_rating, movie.review_count, score)
        try:
            self.store.upsert(
                movie_path,
                {"avgRating": avg_rating, "reviewCount": review_count},
                merge=True,
            )
        except StoreError:
            logger.error(
                f"Review {review_id} stored but aggregate update failed for movie {movie_id}; "
                "aggregate drifts until recomputed"
            )
            raise

        return RatingAggregate(movie_id=movie_id, avg_rating=avg_rating, review_count=review_count)

    def has_reviewed(self, movie_id: str, user: SessionUser) -> bool:
        """Check for an existing review, including ones stored under generated ids."""
        doc = self.store.get(self.paths.review(review_id_for(movie_id, user.id)))
        if doc is not None and doc.get("movieId") == movie_id and doc.get("userId") == user.id:
            return True
        existing = self.store.query(
            self.paths.reviews(),
            where=[Filter("movieId", "==", movie_id), Filter("userId", "==", user.id)],
            limit=1,
        )
        return bool(existing)

    def rated_movie_ids(self, user: SessionUser | None, movie_ids: list[str]) -> set[str]:
        """Which of movie_ids the user has reviewed, from one query over their reviews."""
        if user is None or not movie_ids:
            return set()
        docs = self.store.query(self.paths.reviews(), where=[Filter("userId", "==", user.id)])
        reviewed = {doc.get("movieId") for doc in docs}
        return reviewed.intersection(movie_ids)

    def list_reviews(self, movie_id: str) -> list[Review]:
        """All reviews of a movie, newest first."""
        docs = self.store.query(
            self.paths.reviews(),
            where=[Filter("movieId", "==", movie_id)],
            order_by="createdAt",
            descending=True,
        )
        return [doc_to_review(doc) for doc in docs]

    def recompute(self, movie_id: str) -> RatingAggregate:
        """Rebuild avgRating/reviewCount from the stored reviews and write them back."""
        movie_path = self.paths.movie(movie_id)
        require_movie(self.store.get(movie_path))

        docs = self.store.query(self.paths.reviews(), where=[Filter("movieId", "==", movie_id)])
        scores = [doc_to_review(doc).score for doc in docs]
        review_count = len(scores)
        avg_rating = sum(scores) / review_count if review_count else 0.0

        self.store.upsert(
            movie_path,
            {"avgRating": avg_rating, "reviewCount": review_count},
            merge=True,
        )
        return RatingAggregate(movie_id=movie_id, avg_rating=avg_rating, review_count=review_count)
