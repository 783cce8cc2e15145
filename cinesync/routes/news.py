"""
News routes: listing, detail, reactions and article comments.
"""

from fastapi import APIRouter, Query

from ..schemas import (
    ArticleDetailResponse,
    ArticleResponse,
    CommentRequest,
    CommentResponse,
    NewsPageResponse,
    ReactionRequest,
    ReactionResponse,
)
from ..services import CommentServiceDep, ListingServiceDep, ReactionServiceDep
from ..session import CurrentUser
from ..store.models import ReactionState

router = APIRouter(prefix="/news", tags=["news"])


# ─────────────────────────────────────────────────────────────
# Listing & Detail
# ─────────────────────────────────────────────────────────────

@router.get("")
async def list_news(
    listing: ListingServiceDep,
    category: str | None = None,
    cursor: str | None = None,
    q: str | None = Query(default=None, max_length=200),
) -> NewsPageResponse:
    """One page of published news, newest first.

    Args:
        category: Exact category, or "all"/empty for every category
        cursor: next_cursor from the previous page
        q: Title search applied to this page only
    """
    page = listing.list_news(category=category, cursor=cursor, search=q)
    return NewsPageResponse(
        items=[ArticleResponse.from_model(a) for a in page.items],
        next_cursor=page.next_cursor,
        has_more=page.has_more,
    )


@router.get("/{article_id}")
async def get_article(
    article_id: str,
    listing: ListingServiceDep,
    reactions: ReactionServiceDep,
    user: CurrentUser,
) -> ArticleDetailResponse:
    """Article with content and the viewer's current reaction."""
    article = listing.get_article(article_id)
    return ArticleDetailResponse.from_model(article, reactions.get_reaction(article_id, user))


# ─────────────────────────────────────────────────────────────
# Reactions
# ─────────────────────────────────────────────────────────────

@router.get("/{article_id}/reaction")
async def get_reaction(
    article_id: str,
    listing: ListingServiceDep,
    reactions: ReactionServiceDep,
    user: CurrentUser,
) -> ReactionResponse:
    """Current counters and the viewer's reaction."""
    article = listing.get_article(article_id)
    return ReactionResponse.from_model(ReactionState(
        article_id=article.id,
        reaction=reactions.get_reaction(article_id, user),
        likes_count=max(0, article.likes_count),
        dislikes_count=max(0, article.dislikes_count),
    ))


@router.post("/{article_id}/reaction")
async def set_reaction(
    article_id: str,
    request: ReactionRequest,
    reactions: ReactionServiceDep,
    user: CurrentUser,
) -> ReactionResponse:
    """Like or dislike; repeating the current reaction clears it."""
    state = reactions.set_reaction(article_id, user, request.type)
    return ReactionResponse.from_model(state)


# ─────────────────────────────────────────────────────────────
# Comments
# ─────────────────────────────────────────────────────────────

@router.get("/{article_id}/comments")
async def list_comments(
    article_id: str,
    comments: CommentServiceDep,
    user: CurrentUser,
) -> list[CommentResponse]:
    """Comments on an article, oldest first."""
    return [CommentResponse.from_model(c) for c in comments.list_for_article(article_id, viewer=user)]


@router.post("/{article_id}/comments", status_code=201)
async def post_comment(
    article_id: str,
    request: CommentRequest,
    comments: CommentServiceDep,
    user: CurrentUser,
) -> CommentResponse:
    """Post a comment as the signed-in user."""
    return CommentResponse.from_model(comments.create(article_id, user, request.text))
