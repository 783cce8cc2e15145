"""
Service layer for the engagement engine.

Services hold the synchronization rules and the author/identity checks,
keeping routes as thin HTTP adapters. Each service receives the document
store via constructor injection.

Usage in routes:
    from ..services import ReactionServiceDep

    @router.post("/news/{article_id}/reaction")
    async def react(article_id: str, service: ReactionServiceDep, user: CurrentUser):
        return service.set_reaction(article_id, user, "like")
"""

from typing import Annotated

from fastapi import Depends

from ..config import config, get_store
from ..store import DocumentStore

from .comments import CommentService
from .interests import InterestService
from .listing import ListingService, ListingView
from .promotions import PromotionService
from .ratings import RatingService
from .reactions import ReactionService
from .reconciliation import ReconciliationReport, ReconciliationService

__all__ = [
    # Services
    "CommentService",
    "InterestService",
    "ListingService",
    "ListingView",
    "PromotionService",
    "RatingService",
    "ReactionService",
    "ReconciliationReport",
    "ReconciliationService",
    # Type aliases for dependency injection
    "CommentServiceDep",
    "InterestServiceDep",
    "ListingServiceDep",
    "PromotionServiceDep",
    "RatingServiceDep",
    "ReactionServiceDep",
    "ReconciliationServiceDep",
]


StoreDep = Annotated[DocumentStore, Depends(get_store)]


def get_reaction_service(store: StoreDep) -> ReactionService:
    """Dependency to get ReactionService instance."""
    return ReactionService(store)


def get_comment_service(store: StoreDep) -> CommentService:
    """Dependency to get CommentService instance."""
    return CommentService(store)


def get_rating_service(store: StoreDep) -> RatingService:
    """Dependency to get RatingService instance."""
    return RatingService(store)


def get_listing_service(store: StoreDep) -> ListingService:
    """Dependency to get ListingService instance."""
    return ListingService(
        store,
        news_page_size=config.NEWS_PAGE_SIZE,
        movies_page_size=config.MOVIES_PAGE_SIZE,
    )


def get_interest_service(store: StoreDep) -> InterestService:
    """Dependency to get InterestService instance."""
    return InterestService(store)


def get_promotion_service(store: StoreDep) -> PromotionService:
    """Dependency to get PromotionService instance."""
    return PromotionService(store)


def get_reconciliation_service(store: StoreDep) -> ReconciliationService:
    """Dependency to get ReconciliationService instance."""
    return ReconciliationService(store)


ReactionServiceDep = Annotated[ReactionService, Depends(get_reaction_service)]
CommentServiceDep = Annotated[CommentService, Depends(get_comment_service)]
RatingServiceDep = Annotated[RatingService, Depends(get_rating_service)]
ListingServiceDep = Annotated[ListingService, Depends(get_listing_service)]
InterestServiceDep = Annotated[InterestService, Depends(get_interest_service)]
PromotionServiceDep = Annotated[PromotionService, Depends(get_promotion_service)]
ReconciliationServiceDep = Annotated[ReconciliationService, Depends(get_reconciliation_service)]
