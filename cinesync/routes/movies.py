"""
Movie routes: listing, reviews and interest markers.
"""

from fastapi import APIRouter, Query

from ..schemas import (
    InterestResponse,
    MovieResponse,
    MoviesPageResponse,
    RatingResponse,
    ReviewRequest,
    ReviewResponse,
)
from ..services import InterestServiceDep, ListingServiceDep, RatingServiceDep
from ..session import CurrentUser

router = APIRouter(prefix="/movies", tags=["movies"])


# ─────────────────────────────────────────────────────────────
# Listing & Detail
# ─────────────────────────────────────────────────────────────

@router.get("")
async def list_movies(
    listing: ListingServiceDep,
    user: CurrentUser,
    industry: str | None = None,
    cursor: str | None = None,
    q: str | None = Query(default=None, max_length=200),
) -> MoviesPageResponse:
    """One page of released movies, newest release first.

    Args:
        industry: Exact industry, or "all"/empty for every industry
        cursor: next_cursor from the previous page
        q: Title/genre search applied to this page only
    """
    page = listing.list_movies(industry=industry, cursor=cursor, search=q, viewer=user)
    return MoviesPageResponse(
        items=[MovieResponse.from_model(m) for m in page.items],
        next_cursor=page.next_cursor,
        has_more=page.has_more,
    )


@router.get("/{movie_id}")
async def get_movie(
    movie_id: str,
    listing: ListingServiceDep,
    user: CurrentUser,
) -> MovieResponse:
    return MovieResponse.from_model(listing.get_movie(movie_id, viewer=user))


# ─────────────────────────────────────────────────────────────
# Reviews
# ─────────────────────────────────────────────────────────────

@router.get("/{movie_id}/reviews")
async def list_reviews(movie_id: str, ratings: RatingServiceDep) -> list[ReviewResponse]:
    """Reviews of a movie, newest first."""
    return [ReviewResponse.from_model(r) for r in ratings.list_reviews(movie_id)]


@router.post("/{movie_id}/reviews", status_code=201)
async def submit_review(
    movie_id: str,
    request: ReviewRequest,
    ratings: RatingServiceDep,
    user: CurrentUser,
) -> RatingResponse:
    """Rate a movie once; returns the updated aggregate."""
    aggregate = ratings.submit_review(movie_id, user, request.score, request.text)
    return RatingResponse.from_model(aggregate)


# ─────────────────────────────────────────────────────────────
# Interest
# ─────────────────────────────────────────────────────────────

@router.post("/{movie_id}/interest")
async def toggle_interest(
    movie_id: str,
    interests: InterestServiceDep,
    user: CurrentUser,
) -> InterestResponse:
    """Flip the viewer's interest marker for a movie."""
    return InterestResponse(movie_id=movie_id, interested=interests.toggle(movie_id, user))
