"""
API route modules.
"""

from .auth import router as auth_router
from .comments import router as comments_router
from .misc import router as misc_router
from .movies import router as movies_router
from .news import router as news_router
from .users import router as users_router

__all__ = [
    "auth_router",
    "comments_router",
    "misc_router",
    "movies_router",
    "news_router",
    "users_router",
]
