"""
Engagement errors and HTTP helpers for common error patterns.

Services raise the EngagementError hierarchy; the handlers registered by
setup_exception_handlers() turn them into JSON responses.
"""

import logging
from typing import TypeVar

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

T = TypeVar("T")


class EngagementError(Exception):
    """Base class for errors raised by the engagement services."""
    status_code = 500

    def __init__(self, detail: str = ""):
        super().__init__(detail)
        self.detail = detail or self.__class__.__doc__ or "Error"


class NotAuthenticated(EngagementError):
    """Sign in required."""
    status_code = 401


class NotAuthorized(EngagementError):
    """Only the author may change this record."""
    status_code = 403


class ResourceNotFound(EngagementError):
    """Resource not found."""
    status_code = 404


class InvalidInput(EngagementError):
    """Invalid input."""
    status_code = 400


class DuplicateReview(EngagementError):
    """You have already rated this movie."""
    status_code = 409


class StoreError(EngagementError):
    """Document store unavailable."""
    status_code = 503


class DocumentNotFound(StoreError):
    """Document does not exist."""
    status_code = 404


class DocumentExists(StoreError):
    """Document already exists."""
    status_code = 409


def require_resource(resource: T | None, detail: str = "Resource not found") -> T:
    """
    Raise ResourceNotFound if resource is None, otherwise return the resource.

    Usage:
        article = require_resource(store.get(path), "Article not found")
    """
    if resource is None:
        raise ResourceNotFound(detail)
    return resource


def require_article(article: T | None) -> T:
    """Raise 404 if article is None."""
    return require_resource(article, "Article not found")


def require_movie(movie: T | None) -> T:
    """Raise 404 if movie is None."""
    return require_resource(movie, "Movie not found")


def require_comment(comment: T | None) -> T:
    """Raise 404 if comment is None."""
    return require_resource(comment, "Comment not found")


async def engagement_error_handler(request: Request, exc: EngagementError) -> JSONResponse:
    """Render an EngagementError as a JSON error response."""
    if isinstance(exc, StoreError) and exc.status_code >= 500:
        logger.error(f"Store failure on {request.method} {request.url.path}: {exc.detail}")
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, NotAuthenticated) else None
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=headers,
    )


def setup_exception_handlers(app: FastAPI):
    """Register the engagement error handler on a FastAPI app."""
    app.add_exception_handler(EngagementError, engagement_error_handler)


__all__ = [
    "EngagementError",
    "NotAuthenticated",
    "NotAuthorized",
    "ResourceNotFound",
    "InvalidInput",
    "DuplicateReview",
    "StoreError",
    "DocumentNotFound",
    "DocumentExists",
    "require_resource",
    "require_article",
    "require_movie",
    "require_comment",
    "setup_exception_handlers",
]
