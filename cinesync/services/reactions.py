"""
Reaction ledger: per-user like/dislike toggles on news articles.

Each (article, user) pair has one ledger entry at
news/{articleId}/feedback/{userId} holding {"type": "like" | "dislike" | None}.
The article document caches likesCount and dislikesCount, maintained by
atomic increments rather than recounting. The ledger write and the counter
increment are two separate store calls, ledger first; if the second fails
the cached counts drift until ReconciliationService repairs them.
"""

import logging

from ..exceptions import InvalidInput, NotAuthenticated, StoreError, require_article
from ..session import SessionUser
from ..store import DocumentStore
from ..store.converters import doc_to_article
from ..store.models import REACTION_TYPES, Article, ReactionState

logger = logging.getLogger(__name__)


def counter_field(reaction: str) -> str:
    """Name of the article counter for a reaction type ("like" -> "likesCount")."""
    return f"{reaction}sCount"


class ReactionService:
    """Toggles a viewer's reaction and keeps the article counters in step."""

    def __init__(self, store: DocumentStore):
        self.store = store
        self.paths = store.paths

    def get_reaction(self, article_id: str, user: SessionUser | None) -> str | None:
        """Return the viewer's current reaction, or None (always None when anonymous)."""
        if user is None:
            return None
        entry = self.store.get(self.paths.feedback_entry(article_id, user.id))
        if entry is None:
            return None
        reaction = entry.get("type")
        return reaction if reaction in REACTION_TYPES else None

    def set_reaction(
        self,
        article_id: str,
        user: SessionUser | None,
        desired: str,
    ) -> ReactionState:
        """
        Apply a like/dislike click.

        Clicking the current reaction clears it; clicking the other one
        switches. Returns the intended post-state for the caller to show
        without waiting for a reload.

        Raises:
            NotAuthenticated: anonymous caller (no store call is made)
            InvalidInput: desired is not "like" or "dislike"
            ResourceNotFound: the article does not exist
            StoreError: a store write failed
        """
        if user is None:
            raise NotAuthenticated("Sign in to react to articles")
        if desired not in REACTION_TYPES:
            raise InvalidInput(f"Unknown reaction: {desired!r}")

        article_path = self.paths.article(article_id)
        article = doc_to_article(require_article(self.store.get(article_path)))
        previous = self.get_reaction(article_id, user)

        if previous == desired:
            # Toggle off. The decrement is unconditional, so a counter
            # that already reads 0 goes negative in the store.
            new_reaction = None
            deltas = {counter_field(desired): -1}
        else:
            new_reaction = desired
            deltas = {counter_field(desired): 1}
            if previous is not None:
                deltas[counter_field(previous)] = -1

        self.store.upsert(
            self.paths.feedback_entry(article_id, user.id),
            {"type": new_reaction},
            merge=True,
        )

        try:
            self.store.increment(article_path, deltas)
        except StoreError:
            logger.error(
                f"Ledger for article {article_id} user {user.id} set to {new_reaction!r} "
                f"but counter update {deltas} failed; counts drift until reconciled"
            )
            raise

        logger.debug(f"Reaction on {article_id} by {user.id}: {previous!r} -> {new_reaction!r}")
        return self._post_state(article, new_reaction, deltas)

    @staticmethod
    def _post_state(article: Article, reaction: str | None, deltas: dict[str, int]) -> ReactionState:
        """Counts as the viewer should see them; never below zero."""
        return ReactionState(
            article_id=article.id,
            reaction=reaction,
            likes_count=max(0, article.likes_count + deltas.get("likesCount", 0)),
            dislikes_count=max(0, article.dislikes_count + deltas.get("dislikesCount", 0)),
        )
