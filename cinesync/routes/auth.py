"""
Session routes.

Sign-in itself happens with an external identity provider. These routes
report the current session, clear it, and (only with ALLOW_DEV_SESSIONS)
issue tokens for local development.
"""

import logging

from fastapi import APIRouter, HTTPException, Response

from ..config import config
from ..schemas import AuthStatusResponse, SessionRequest, SessionResponse
from ..session import SESSION_COOKIE, CurrentUser, create_session_token, set_session_cookie

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("/status")
async def auth_status(user: CurrentUser) -> AuthStatusResponse:
    """Whether sessions are enabled and who is signed in."""
    if user is None:
        return AuthStatusResponse(enabled=config.sessions_enabled())
    return AuthStatusResponse(enabled=True, user_id=user.id, display_name=user.display_name)


@router.post("/session")
async def create_session(request: SessionRequest, response: Response) -> SessionResponse:
    """Issue a session token for an identity (development only)."""
    if not config.ALLOW_DEV_SESSIONS:
        raise HTTPException(status_code=404, detail="Not found")
    if not config.sessions_enabled():
        raise HTTPException(status_code=503, detail="Sessions not configured. Set SESSION_SECRET.")

    token = create_session_token(request.user_id, request.display_name)
    set_session_cookie(response, token)
    logger.info(f"Issued development session for user {request.user_id}")
    return SessionResponse(token=token, user_id=request.user_id, display_name=request.display_name)


@router.post("/logout")
async def logout(response: Response) -> dict:
    """Clear the session cookie."""
    response.delete_cookie(key=SESSION_COOKIE, path="/")
    return {"success": True}
