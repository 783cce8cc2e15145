"""
Rate limiting for the engagement API.

Uses slowapi to limit requests per client. Signed-in users are keyed by
their user id so that one account cannot spam reactions or comments from
several addresses; anonymous requests fall back to the remote address.
"""

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address

from .config import config
from .session import get_session


def get_rate_limit() -> str:
    """Get rate limit from config, defaulting to 60/minute."""
    return f"{max(config.RATE_LIMIT_PER_MINUTE, 1)}/minute"


def rate_limit_key(request: Request) -> str:
    """Key requests by session user when there is one, else by IP."""
    user = get_session(request)
    if user is not None:
        return f"user:{user.id}"
    return get_remote_address(request)


limiter = Limiter(
    key_func=rate_limit_key,
    default_limits=[get_rate_limit()],
    storage_uri="memory://",
    enabled=config.RATE_LIMIT_PER_MINUTE > 0,
)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Custom handler for rate limit exceeded errors."""
    return JSONResponse(
        status_code=429,
        content={
            "detail": f"Rate limit exceeded: {exc.detail}",
            "retry_after": getattr(exc, "retry_after", 60),
        },
        headers={"Retry-After": str(getattr(exc, "retry_after", 60))},
    )


def setup_rate_limiting(app):
    """
    Configure rate limiting for a FastAPI app.

    Call this while building the app, before it starts serving.
    """
    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
