"""
Domain models - dataclasses for stored documents.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Generic, TypeVar

T = TypeVar("T")

LIKE = "like"
DISLIKE = "dislike"
REACTION_TYPES = (LIKE, DISLIKE)


@dataclass
class Article:
    id: str
    title: str
    content: str | None
    category: str | None
    scheduled_at: datetime | None
    likes_count: int = 0
    dislikes_count: int = 0
    summary: str | None = None
    author: str | None = None
    image_url: str | None = None


@dataclass
class Movie:
    id: str
    title: str
    poster: str | None
    release_date: datetime | None
    scheduled_at: datetime | None
    industry: str | None
    genre: list[str] = field(default_factory=list)
    avg_rating: float = 0.0
    review_count: int = 0
    # Viewer-relative flags, never stored
    has_rated: bool = False
    is_interested: bool = False


@dataclass
class Comment:
    id: str
    article_id: str
    article_type: str
    user_id: str
    user_name: str | None  # Display name snapshot taken at creation
    text: str
    created_at: datetime | None
    updated_at: datetime | None = None
    approved: bool = True


@dataclass
class Review:
    id: str
    movie_id: str
    user_id: str
    score: float
    text: str | None
    created_at: datetime | None


@dataclass
class InterestMarker:
    movie_id: str
    title: str | None
    poster_url: str | None
    release_date: datetime | None
    added_at: datetime | None


@dataclass
class ReactionState:
    """Intended post-state of an article after a reaction toggle."""
    article_id: str
    reaction: str | None
    likes_count: int
    dislikes_count: int


@dataclass
class RatingAggregate:
    movie_id: str
    avg_rating: float
    review_count: int


@dataclass
class Page(Generic[T]):
    """One page of a cursor-paginated listing."""
    items: list[T]
    next_cursor: str | None
    has_more: bool
