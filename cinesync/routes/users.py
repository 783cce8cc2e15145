"""
Routes for the signed-in user's own records.
"""

from fastapi import APIRouter

from ..schemas import CommentResponse, InterestMarkerResponse
from ..services import CommentServiceDep, InterestServiceDep
from ..session import CurrentUser

router = APIRouter(prefix="/me", tags=["me"])


@router.get("/comments")
async def my_comments(comments: CommentServiceDep, user: CurrentUser) -> list[CommentResponse]:
    """Your comments across all articles, newest first."""
    return [CommentResponse.from_model(c) for c in comments.list_for_user(user)]


@router.get("/interests")
async def my_interests(interests: InterestServiceDep, user: CurrentUser) -> list[InterestMarkerResponse]:
    """Movies you marked as interested, most recent first."""
    return [InterestMarkerResponse.from_model(m) for m in interests.list_for_user(user)]
