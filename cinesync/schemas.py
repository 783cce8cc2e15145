"""
Pydantic models for API request/response validation.
"""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from .services.reconciliation import ReconciliationReport
from .store.converters import format_timestamp
from .store.models import Article, Comment, InterestMarker, Movie, RatingAggregate, ReactionState, Review


def _ts(value: datetime | None) -> str | None:
    return format_timestamp(value) if value else None


# ─────────────────────────────────────────────────────────────
# News Schemas
# ─────────────────────────────────────────────────────────────

class ArticleResponse(BaseModel):
    """Article for list view."""
    id: str
    title: str
    category: str | None
    summary: str | None = None
    image_url: str | None = None
    author: str | None = None
    published_at: str | None
    likes_count: int
    dislikes_count: int

    @classmethod
    def from_model(cls, article: Article) -> "ArticleResponse":
        return cls(
            id=article.id,
            title=article.title,
            category=article.category,
            summary=article.summary,
            image_url=article.image_url,
            author=article.author,
            published_at=_ts(article.scheduled_at),
            likes_count=max(0, article.likes_count),
            dislikes_count=max(0, article.dislikes_count),
        )


class ArticleDetailResponse(ArticleResponse):
    """Article with full content and the viewer's reaction."""
    content: str | None
    user_reaction: Literal["like", "dislike"] | None = None

    @classmethod
    def from_model(cls, article: Article, user_reaction: str | None = None) -> "ArticleDetailResponse":
        base = ArticleResponse.from_model(article)
        return cls(**base.model_dump(), content=article.content, user_reaction=user_reaction)


class NewsPageResponse(BaseModel):
    """One page of the news listing."""
    items: list[ArticleResponse]
    next_cursor: str | None
    has_more: bool


class ReactionRequest(BaseModel):
    """Request to like or dislike an article."""
    type: Literal["like", "dislike"]


class ReactionResponse(BaseModel):
    """Post-state after a reaction toggle."""
    article_id: str
    reaction: Literal["like", "dislike"] | None
    likes_count: int
    dislikes_count: int

    @classmethod
    def from_model(cls, state: ReactionState) -> "ReactionResponse":
        return cls(
            article_id=state.article_id,
            reaction=state.reaction,
            likes_count=state.likes_count,
            dislikes_count=state.dislikes_count,
        )


# ─────────────────────────────────────────────────────────────
# Comment Schemas
# ─────────────────────────────────────────────────────────────

class CommentRequest(BaseModel):
    """Request to post or edit a comment."""
    text: str = Field(min_length=1, max_length=5000)


class CommentResponse(BaseModel):
    """Comment as displayed."""
    id: str
    article_id: str
    user_id: str
    user_name: str
    text: str
    created_at: str | None
    updated_at: str | None = None

    @classmethod
    def from_model(cls, comment: Comment) -> "CommentResponse":
        return cls(
            id=comment.id,
            article_id=comment.article_id,
            user_id=comment.user_id,
            user_name=comment.user_name or "Anonymous",
            text=comment.text,
            created_at=_ts(comment.created_at),
            updated_at=_ts(comment.updated_at),
        )


# ─────────────────────────────────────────────────────────────
# Movie Schemas
# ─────────────────────────────────────────────────────────────

class MovieResponse(BaseModel):
    """Movie for list view."""
    id: str
    title: str
    poster: str | None
    industry: str | None
    genre: list[str]
    release_date: str | None
    avg_rating: float
    review_count: int
    has_rated: bool = False
    is_interested: bool = False

    @classmethod
    def from_model(cls, movie: Movie) -> "MovieResponse":
        return cls(
            id=movie.id,
            title=movie.title,
            poster=movie.poster,
            industry=movie.industry,
            genre=movie.genre,
            release_date=_ts(movie.release_date),
            avg_rating=round(movie.avg_rating, 2),
            review_count=movie.review_count,
            has_rated=movie.has_rated,
            is_interested=movie.is_interested,
        )


class MoviesPageResponse(BaseModel):
    """One page of the movie listing."""
    items: list[MovieResponse]
    next_cursor: str | None
    has_more: bool


class ReviewRequest(BaseModel):
    """Request to rate a movie."""
    score: float = Field(ge=1, le=5)
    text: str | None = Field(default=None, max_length=5000)


class RatingResponse(BaseModel):
    """Movie rating aggregate after a review."""
    movie_id: str
    avg_rating: float
    review_count: int

    @classmethod
    def from_model(cls, aggregate: RatingAggregate) -> "RatingResponse":
        return cls(
            movie_id=aggregate.movie_id,
            avg_rating=aggregate.avg_rating,
            review_count=aggregate.review_count,
        )


class ReviewResponse(BaseModel):
    """A movie review."""
    id: str
    movie_id: str
    user_id: str
    score: float
    text: str | None
    created_at: str | None

    @classmethod
    def from_model(cls, review: Review) -> "ReviewResponse":
        return cls(
            id=review.id,
            movie_id=review.movie_id,
            user_id=review.user_id,
            score=review.score,
            text=review.text,
            created_at=_ts(review.created_at),
        )


class InterestResponse(BaseModel):
    """Interest state after a toggle."""
    movie_id: str
    interested: bool


class InterestMarkerResponse(BaseModel):
    """A saved interest marker."""
    movie_id: str
    title: str | None
    poster_url: str | None
    release_date: str | None
    added_at: str | None

    @classmethod
    def from_model(cls, marker: InterestMarker) -> "InterestMarkerResponse":
        return cls(
            movie_id=marker.movie_id,
            title=marker.title,
            poster_url=marker.poster_url,
            release_date=_ts(marker.release_date),
            added_at=_ts(marker.added_at),
        )


# ─────────────────────────────────────────────────────────────
# Misc Schemas
# ─────────────────────────────────────────────────────────────

class PromotionRequest(BaseModel):
    """Advertiser contact request."""
    name: str = Field(min_length=1, max_length=200)
    email: str = Field(min_length=3, max_length=320)
    company: str | None = Field(default=None, max_length=200)
    message: str = Field(min_length=1, max_length=5000)


class PromotionResponse(BaseModel):
    id: str


class ReconcileResponse(BaseModel):
    """Result of a reconciliation pass."""
    articles_fixed: list[str]
    movies_fixed: list[str]
    mirrors_created: list[str]
    mirrors_removed: list[str]
    errors: list[str]

    @classmethod
    def from_report(cls, report: ReconciliationReport) -> "ReconcileResponse":
        return cls(
            articles_fixed=report.articles_fixed,
            movies_fixed=report.movies_fixed,
            mirrors_created=report.mirrors_created,
            mirrors_removed=report.mirrors_removed,
            errors=report.errors,
        )


# ─────────────────────────────────────────────────────────────
# Session Schemas
# ─────────────────────────────────────────────────────────────

class SessionRequest(BaseModel):
    """Identity to sign a development session for."""
    user_id: str = Field(min_length=1, max_length=128, pattern=r"^[^/]+$")
    display_name: str | None = Field(default=None, max_length=200)


class SessionResponse(BaseModel):
    token: str
    user_id: str
    display_name: str | None


class AuthStatusResponse(BaseModel):
    """Session configuration and current identity."""
    enabled: bool
    user_id: str | None = None
    display_name: str | None = None
