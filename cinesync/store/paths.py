"""
Document path conventions.

Everything lives under a namespace root (the site's app id). Per-article
reaction ledgers and per-user comment mirrors and interests are nested
subcollections.
"""

from ..exceptions import InvalidInput


def _segment(value: str) -> str:
    """Validate a single path segment (an id)."""
    value = str(value).strip()
    if not value or "/" in value:
        raise InvalidInput(f"Invalid identifier: {value!r}")
    return value


def split_path(path: str) -> tuple[str, str]:
    """Split a document path into (collection path, document id)."""
    collection, _, doc_id = path.strip("/").rpartition("/")
    if not collection or not doc_id:
        raise ValueError(f"Not a document path: {path!r}")
    return collection, doc_id


class StorePaths:
    """Builds namespaced collection and document paths."""

    def __init__(self, namespace: str = ""):
        self.root = namespace.strip("/")

    def _join(self, *parts: str) -> str:
        if self.root:
            return "/".join((self.root, *parts))
        return "/".join(parts)

    # News articles and their reaction ledgers

    def news(self) -> str:
        return self._join("news")

    def article(self, article_id: str) -> str:
        return self._join("news", _segment(article_id))

    def feedback(self, article_id: str) -> str:
        return self._join("news", _segment(article_id), "feedback")

    def feedback_entry(self, article_id: str, user_id: str) -> str:
        return self._join("news", _segment(article_id), "feedback", _segment(user_id))

    # Comments: canonical records and per-user mirrors

    def comments(self) -> str:
        return self._join("comments")

    def comment(self, comment_id: str) -> str:
        return self._join("comments", _segment(comment_id))

    def users(self) -> str:
        return self._join("users")

    def user(self, user_id: str) -> str:
        return self._join("users", _segment(user_id))

    def user_comments(self, user_id: str) -> str:
        return self._join("users", _segment(user_id), "userComments")

    def user_comment(self, user_id: str, comment_id: str) -> str:
        return self._join("users", _segment(user_id), "userComments", _segment(comment_id))

    def interests(self, user_id: str) -> str:
        return self._join("users", _segment(user_id), "interests")

    def interest(self, user_id: str, movie_id: str) -> str:
        return self._join("users", _segment(user_id), "interests", _segment(movie_id))

    # Movies and reviews

    def movies(self) -> str:
        return self._join("movies")

    def movie(self, movie_id: str) -> str:
        return self._join("movies", _segment(movie_id))

    def reviews(self) -> str:
        return self._join("reviews")

    def review(self, review_id: str) -> str:
        return self._join("reviews", _segment(review_id))

    def promotions(self) -> str:
        return self._join("promotions")
