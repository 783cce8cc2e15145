"""
Interest markers: a user's "interested" flag on upcoming movies.

The marker's presence at users/{userId}/interests/{movieId} is the flag.
"""

import logging

from ..exceptions import NotAuthenticated, require_movie
from ..session import SessionUser
from ..store import DocumentStore
from ..store.converters import doc_to_interest, doc_to_movie, utcnow
from ..store.models import InterestMarker

logger = logging.getLogger(__name__)


class InterestService:
    """Toggle and list interest markers."""

    def __init__(self, store: DocumentStore):
        self.store = store
        self.paths = store.paths

    def toggle(self, movie_id: str, user: SessionUser | None) -> bool:
        """Flip the marker for a movie. Returns True when the user is now interested."""
        if user is None:
            raise NotAuthenticated("Please login to save interest")

        marker_path = self.paths.interest(user.id, movie_id)
        if self.store.get(marker_path) is not None:
            self.store.delete(marker_path)
            logger.debug(f"User {user.id} removed interest in {movie_id}")
            return False

        movie = doc_to_movie(require_movie(self.store.get(self.paths.movie(movie_id))))
        self.store.upsert(
            marker_path,
            {
                "movieId": movie_id,
                "title": movie.title,
                "posterUrl": movie.poster,
                "releaseDate": movie.release_date,
                "addedAt": utcnow(),
            },
            merge=False,
        )
        logger.debug(f"User {user.id} added interest in {movie_id}")
        return True

    def interested_ids(self, user: SessionUser | None, movie_ids: list[str]) -> set[str]:
        """Which of movie_ids carry a marker, from one query over the user's markers."""
        if user is None or not movie_ids:
            return set()
        docs = self.store.query(self.paths.interests(user.id))
        return {doc.id for doc in docs}.intersection(movie_ids)

    def list_for_user(self, user: SessionUser | None) -> list[InterestMarker]:
        """The user's markers, most recently added first."""
        if user is None:
            raise NotAuthenticated("Please login to view interests")
        docs = self.store.query(self.paths.interests(user.id), order_by="addedAt", descending=True)
        return [doc_to_interest(doc) for doc in docs]
