"""
Document converters - timestamps and stored documents to dataclasses.

Timestamps are stored as UTC ISO-8601 strings with millisecond precision
and a trailing "Z", so string order inside the store equals time order.
"""

from datetime import date, datetime, timezone
from typing import Any

from .base import Document
from .models import Article, Comment, InterestMarker, Movie, Review


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime | date) -> str:
    """Format a datetime as a sortable UTC timestamp string."""
    if not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: Any) -> datetime | None:
    """Parse a stored timestamp; returns None for missing or malformed values."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def to_store_value(value: Any) -> Any:
    """Normalize a Python value for storage or comparison inside the store."""
    if isinstance(value, (datetime, date)):
        return format_timestamp(value)
    if isinstance(value, dict):
        return {k: to_store_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_store_value(v) for v in value]
    return value


def _int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _genres(value: Any) -> list[str]:
    if isinstance(value, list):
        return [str(g) for g in value]
    if isinstance(value, str) and value:
        return [value]
    return []


def doc_to_article(doc: Document) -> Article:
    """Convert a news document to an Article."""
    data = doc.data
    return Article(
        id=doc.id,
        title=data.get("title") or "",
        content=data.get("content"),
        category=data.get("category"),
        scheduled_at=parse_timestamp(data.get("scheduledAt")),
        likes_count=_int(data.get("likesCount")),
        dislikes_count=_int(data.get("dislikesCount")),
        summary=data.get("summary"),
        author=data.get("author"),
        # Older documents use "image"
        image_url=data.get("imageUrl") or data.get("image"),
    )


def doc_to_movie(doc: Document) -> Movie:
    """Convert a movie document to a Movie."""
    data = doc.data
    return Movie(
        id=doc.id,
        title=data.get("title") or "",
        poster=data.get("poster") or data.get("posterUrl"),
        release_date=parse_timestamp(data.get("releaseDate")),
        scheduled_at=parse_timestamp(data.get("scheduledAt")),
        industry=data.get("industry"),
        genre=_genres(data.get("genre")),
        avg_rating=_float(data.get("avgRating")),
        review_count=_int(data.get("reviewCount")),
    )


def doc_to_comment(doc: Document) -> Comment:
    """Convert a canonical or mirror comment document to a Comment."""
    data = doc.data
    return Comment(
        id=data.get("commentId") or doc.id,
        article_id=data.get("articleId") or "",
        article_type=data.get("articleType") or "news",
        user_id=data.get("userId") or "",
        user_name=data.get("userName") or data.get("username") or data.get("name"),
        text=data.get("comment") or data.get("commentText") or "",
        created_at=parse_timestamp(data.get("createdAt")),
        updated_at=parse_timestamp(data.get("updatedAt")),
        approved=bool(data.get("approved", True)),
    )


def doc_to_review(doc: Document) -> Review:
    """Convert a review document to a Review."""
    data = doc.data
    return Review(
        id=doc.id,
        movie_id=data.get("movieId") or "",
        user_id=data.get("userId") or "",
        score=_float(data.get("score")),
        text=data.get("text"),
        created_at=parse_timestamp(data.get("createdAt")),
    )


def doc_to_interest(doc: Document) -> InterestMarker:
    """Convert an interest marker document to an InterestMarker."""
    data = doc.data
    return InterestMarker(
        movie_id=data.get("movieId") or doc.id,
        title=data.get("title"),
        poster_url=data.get("posterUrl"),
        release_date=parse_timestamp(data.get("releaseDate")),
        added_at=parse_timestamp(data.get("addedAt")),
    )
