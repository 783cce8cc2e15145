"""
Promotion inquiries: fire-and-forget contact requests from advertisers.
"""

import logging

from ..exceptions import InvalidInput
from ..store import DocumentStore
from ..store.converters import utcnow

logger = logging.getLogger(__name__)


class PromotionService:
    """Stores promotion inquiries; nothing reads them back here."""

    def __init__(self, store: DocumentStore):
        self.store = store
        self.paths = store.paths

    def submit(self, name: str, email: str, message: str, company: str | None = None) -> str:
        """Record an inquiry and return its id."""
        for label, value in (("name", name), ("email", email), ("message", message)):
            if not value or not value.strip():
                raise InvalidInput(f"Field '{label}' is required")

        inquiry_id = self.store.create(
            self.paths.promotions(),
            {
                "name": name.strip(),
                "email": email.strip(),
                "company": (company or "").strip(),
                "message": message,
                "createdAt": utcnow(),
            },
        )
        logger.info(f"Promotion inquiry {inquiry_id} received")
        return inquiry_id
