"""
Comment routes: edit and delete by the author.
"""

from fastapi import APIRouter

from ..schemas import CommentRequest, CommentResponse
from ..services import CommentServiceDep
from ..session import CurrentUser

router = APIRouter(prefix="/comments", tags=["comments"])


@router.put("/{comment_id}")
async def edit_comment(
    comment_id: str,
    request: CommentRequest,
    comments: CommentServiceDep,
    user: CurrentUser,
) -> CommentResponse:
    """Replace the text of one of your comments."""
    return CommentResponse.from_model(comments.edit(comment_id, user, request.text))


@router.delete("/{comment_id}")
async def delete_comment(
    comment_id: str,
    comments: CommentServiceDep,
    user: CurrentUser,
) -> dict:
    """Delete one of your comments."""
    comments.delete(comment_id, user)
    return {"success": True}
