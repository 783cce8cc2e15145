"""
Listing service: cursor-paginated news and movie listings.

Only items whose schedule has passed are listed: news needs
scheduledAt <= now, movies need both scheduledAt <= now and
releaseDate <= now. News is ordered by scheduledAt, movies by releaseDate,
newest first, with ties broken by document path.

Free-text search only filters the page that was fetched. It never changes
next_cursor or has_more, so a search can miss matches on pages not loaded
yet.
"""

import logging
from datetime import datetime
from typing import Awaitable, Callable, Generic, TypeVar

from ..exceptions import require_article, require_movie
from ..session import SessionUser
from ..store import DocumentStore, Filter
from ..store.converters import doc_to_article, doc_to_movie, utcnow
from ..store.models import Article, Movie, Page
from .interests import InterestService
from .ratings import RatingService

logger = logging.getLogger(__name__)

T = TypeVar("T")

ALL = "all"


def _normalize_filter(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    if not value or value.lower() == ALL:
        return None
    return value


def matches_news_search(article: Article, search: str) -> bool:
    return search.lower() in (article.title or "").lower()


def matches_movie_search(movie: Movie, search: str) -> bool:
    needle = search.lower()
    if needle in (movie.title or "").lower():
        return True
    return any(needle in genre.lower() for genre in movie.genre)


class ListingService:
    """Fetches listing pages from the store."""

    def __init__(
        self,
        store: DocumentStore,
        news_page_size: int = 12,
        movies_page_size: int = 20,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.paths = store.paths
        self.news_page_size = news_page_size
        self.movies_page_size = movies_page_size
        self.clock = clock

    def _fetch_page(
        self,
        collection: str,
        where: list[Filter],
        order_by: str,
        page_size: int,
        cursor: str | None,
    ) -> tuple[list, str | None, bool]:
        # One extra document tells whether another page exists
        docs = self.store.query(
            collection,
            where=where,
            order_by=order_by,
            descending=True,
            limit=page_size + 1,
            start_after=cursor,
        )
        has_more = len(docs) > page_size
        docs = docs[:page_size]
        next_cursor = docs[-1].id if docs else None
        return docs, next_cursor, has_more

    def list_news(
        self,
        category: str | None = None,
        cursor: str | None = None,
        search: str | None = None,
    ) -> Page[Article]:
        """One page of published news, optionally in a single category."""
        now = self.clock()
        where = [Filter("scheduledAt", "<=", now)]
        category = _normalize_filter(category)
        if category:
            where.append(Filter("category", "==", category))

        docs, next_cursor, has_more = self._fetch_page(
            self.paths.news(), where, "scheduledAt", self.news_page_size, cursor
        )
        articles = [doc_to_article(doc) for doc in docs]
        if search and search.strip():
            articles = [a for a in articles if matches_news_search(a, search.strip())]

        return Page(items=articles, next_cursor=next_cursor, has_more=has_more)

    def list_movies(
        self,
        industry: str | None = None,
        cursor: str | None = None,
        search: str | None = None,
        viewer: SessionUser | None = None,
    ) -> Page[Movie]:
        """One page of released movies, flagged with the viewer's ratings and interests."""
        now = self.clock()
        where = [
            Filter("scheduledAt", "<=", now),
            Filter("releaseDate", "<=", now),
        ]
        industry = _normalize_filter(industry)
        if industry:
            where.append(Filter("industry", "==", industry))

        docs, next_cursor, has_more = self._fetch_page(
            self.paths.movies(), where, "releaseDate", self.movies_page_size, cursor
        )
        movies = [doc_to_movie(doc) for doc in docs]

        if viewer is not None and movies:
            ids = [m.id for m in movies]
            rated = RatingService(self.store).rated_movie_ids(viewer, ids)
            interested = InterestService(self.store).interested_ids(viewer, ids)
            for movie in movies:
                movie.has_rated = movie.id in rated
                movie.is_interested = movie.id in interested

        if search and search.strip():
            movies = [m for m in movies if matches_movie_search(m, search.strip())]

        return Page(items=movies, next_cursor=next_cursor, has_more=has_more)

    def get_article(self, article_id: str) -> Article:
        """A single published article; unpublished ones are not found."""
        article = doc_to_article(require_article(self.store.get(self.paths.article(article_id))))
        if article.scheduled_at is None or article.scheduled_at > self.clock():
            require_article(None)
        return article

    def get_movie(self, movie_id: str, viewer: SessionUser | None = None) -> Movie:
        """A single released movie; scheduled or unreleased ones are not found."""
        movie = doc_to_movie(require_movie(self.store.get(self.paths.movie(movie_id))))
        now = self.clock()
        for moment in (movie.scheduled_at, movie.release_date):
            if moment is None or moment > now:
                require_movie(None)
        if viewer is not None:
            movie.has_rated = bool(RatingService(self.store).rated_movie_ids(viewer, [movie_id]))
            movie.is_interested = bool(InterestService(self.store).interested_ids(viewer, [movie_id]))
        return movie


class ListingView(Generic[T]):
    """
    Client-side accumulation of pages for one listing.

    Each fetch takes a request token; a response is applied only if its
    token is still the latest one issued, so a slow response to an older
    request (e.g. before the category changed) is discarded.
    """

    def __init__(self, filter_value: str | None = None):
        self.filter_value = filter_value
        self.items: list[T] = []
        self.cursor: str | None = None
        self.has_more = True
        self._latest_token = 0

    def issue_token(self) -> int:
        self._latest_token += 1
        return self._latest_token

    def is_current(self, token: int) -> bool:
        return token == self._latest_token

    def set_filter(self, filter_value: str | None) -> None:
        """Switch filter; drops loaded pages and invalidates requests in flight."""
        self.filter_value = filter_value
        self.items = []
        self.cursor = None
        self.has_more = True
        self.issue_token()

    def apply(self, token: int, page: Page[T], reset: bool = False) -> bool:
        """Apply a page if its token is current. Returns False for stale responses."""
        if not self.is_current(token):
            logger.debug(f"Discarding stale listing response (token {token}, latest {self._latest_token})")
            return False
        self.items = list(page.items) if reset else self.items + list(page.items)
        if page.next_cursor is not None:
            self.cursor = page.next_cursor
        self.has_more = page.has_more
        return True

    async def load(
        self,
        fetch: Callable[[str | None, str | None], Awaitable[Page[T]]],
        reset: bool = False,
    ) -> bool:
        """Fetch the first (reset) or next page with fetch(filter_value, cursor) and apply it."""
        token = self.issue_token()
        cursor = None if reset else self.cursor
        page = await fetch(self.filter_value, cursor)
        return self.apply(token, page, reset=reset)

    def visible(self, search: str | None, matches: Callable[[T, str], bool]) -> list[T]:
        """Loaded items filtered by search; only loaded pages are searched."""
        if not search or not search.strip():
            return list(self.items)
        return [item for item in self.items if matches(item, search.strip())]
