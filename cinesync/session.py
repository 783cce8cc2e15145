"""
Session provider.

Identity is established by an external sign-in surface; this module only
issues and verifies signed session tokens and exposes the current user to
routes. Tokens are read from the Authorization header first (for
cross-origin clients) and from the `session` cookie second.
"""

import logging
from datetime import datetime, timezone
from typing import Annotated, Optional

from fastapi import Depends, HTTPException, Request, Response
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from pydantic import BaseModel

from .config import config

logger = logging.getLogger(__name__)

SESSION_COOKIE = "session"

_serializer: Optional[URLSafeTimedSerializer] = None
_serializer_secret: str | None = None


class SessionUser(BaseModel):
    """The signed-in user as carried in the session token."""
    id: str
    display_name: Optional[str] = None
    created_at: str


def get_serializer() -> URLSafeTimedSerializer:
    """Get the session serializer, creating it if needed."""
    global _serializer, _serializer_secret
    if not config.SESSION_SECRET:
        raise HTTPException(status_code=500, detail="SESSION_SECRET not configured")
    if _serializer is None or _serializer_secret != config.SESSION_SECRET:
        _serializer = URLSafeTimedSerializer(config.SESSION_SECRET, salt="cinesync-session")
        _serializer_secret = config.SESSION_SECRET
    return _serializer


def create_session_token(user_id: str, display_name: str | None = None) -> str:
    """Sign a session token for an identity established elsewhere."""
    user = SessionUser(
        id=user_id,
        display_name=display_name,
        created_at=datetime.now(timezone.utc).isoformat(),
    )
    return get_serializer().dumps(user.model_dump())


def set_session_cookie(response: Response, token: str) -> None:
    """Attach the session token as an HTTP-only cookie."""
    response.set_cookie(
        key=SESSION_COOKIE,
        value=token,
        max_age=config.SESSION_MAX_AGE,
        httponly=True,
        secure=config.COOKIE_SECURE,
        samesite="lax",
        path="/",
    )


def _load_token(token: str) -> SessionUser | None:
    try:
        data = get_serializer().loads(token, max_age=config.SESSION_MAX_AGE)
        return SessionUser(**data)
    except SignatureExpired:
        logger.debug("Session token expired")
    except BadSignature:
        logger.debug("Invalid session token signature")
    except (TypeError, ValueError) as e:
        logger.warning(f"Malformed session payload: {e}")
    return None


def get_session(request: Request) -> SessionUser | None:
    """Extract and validate the session from the request, or None if anonymous."""
    if not config.sessions_enabled():
        return None

    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        user = _load_token(auth_header[7:])
        if user:
            return user

    cookie = request.cookies.get(SESSION_COOKIE)
    if cookie:
        return _load_token(cookie)
    return None


def current_user(request: Request) -> SessionUser | None:
    """Dependency: the signed-in user, or None for anonymous visitors."""
    return get_session(request)


CurrentUser = Annotated[SessionUser | None, Depends(current_user)]
