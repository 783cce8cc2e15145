"""
Reconciliation: repair drift between cached aggregates and their sources.

Counters and aggregates are updated in the hot path by increments and
cached arithmetic, and the comment pair is two separate writes. This pass
recomputes everything from the source records:

- likesCount/dislikesCount from the reaction ledger entries,
- avgRating/reviewCount from the reviews,
- missing comment mirrors from canonical comments (and drops mirrors whose
  canonical comment is gone).
"""

import logging
from dataclasses import dataclass, field

from ..exceptions import EngagementError, StoreError, require_article, require_movie
from ..store import DocumentStore, Filter
from ..store.converters import doc_to_movie
from ..store.models import DISLIKE, LIKE
from .ratings import RatingService
from .reactions import counter_field

logger = logging.getLogger(__name__)

# Tolerance when comparing a cached average with the recomputed one
_RATING_EPSILON = 1e-9


@dataclass
class ReconciliationReport:
    """What a reconciliation pass changed."""
    articles_fixed: list[str] = field(default_factory=list)
    movies_fixed: list[str] = field(default_factory=list)
    mirrors_created: list[str] = field(default_factory=list)
    mirrors_removed: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return bool(
            self.articles_fixed or self.movies_fixed
            or self.mirrors_created or self.mirrors_removed
        )


class ReconciliationService:
    """Recomputes cached engagement data from source records."""

    def __init__(self, store: DocumentStore):
        self.store = store
        self.paths = store.paths

    def reconcile_article(self, article_id: str) -> bool:
        """Recount an article's reactions. Returns True if the cached counts were wrong."""
        article_path = self.paths.article(article_id)
        article = require_article(self.store.get(article_path))

        counts = {}
        for reaction in (LIKE, DISLIKE):
            entries = self.store.query(
                self.paths.feedback(article_id),
                where=[Filter("type", "==", reaction)],
            )
            counts[counter_field(reaction)] = len(entries)

        if all(article.get(name) == value for name, value in counts.items()):
            return False

        logger.info(
            f"Article {article_id} counters drifted: "
            f"likes {article.get('likesCount')} -> {counts['likesCount']}, "
            f"dislikes {article.get('dislikesCount')} -> {counts['dislikesCount']}"
        )
        self.store.update(article_path, counts)
        return True

    def reconcile_movie(self, movie_id: str) -> bool:
        """Recompute a movie's rating aggregate. Returns True if the cached one was wrong."""
        movie = doc_to_movie(require_movie(self.store.get(self.paths.movie(movie_id))))
        aggregate = RatingService(self.store).recompute(movie_id)

        drifted = (
            movie.review_count != aggregate.review_count
            or abs(movie.avg_rating - aggregate.avg_rating) > _RATING_EPSILON
        )
        if drifted:
            logger.info(
                f"Movie {movie_id} aggregate drifted: "
                f"{movie.avg_rating}/{movie.review_count} -> "
                f"{aggregate.avg_rating}/{aggregate.review_count}"
            )
        return drifted

    def repair_comment_mirrors(self, report: ReconciliationReport | None = None) -> ReconciliationReport:
        """Write missing mirrors and delete mirrors without a canonical comment."""
        report = report or ReconciliationReport()

        for doc in self.store.query(self.paths.comments()):
            user_id = doc.get("userId")
            if not user_id:
                continue
            try:
                mirror_path = self.paths.user_comment(user_id, doc.id)
                if self.store.get(mirror_path) is None:
                    self.store.upsert(mirror_path, {**doc.data, "commentId": doc.id}, merge=False)
                    report.mirrors_created.append(doc.id)
            except EngagementError as e:
                logger.error(f"Repairing mirror for comment {doc.id} failed: {e}")
                report.errors.append(f"comments/{doc.id}")

        for mirror in self.store.query_group("userComments"):
            comment_id = mirror.get("commentId") or mirror.id
            try:
                if self.store.get(self.paths.comment(comment_id)) is None:
                    self.store.delete(mirror.path)
                    report.mirrors_removed.append(comment_id)
            except EngagementError as e:
                logger.error(f"Checking mirror {mirror.path} failed: {e}")
                report.errors.append(mirror.path)

        if report.mirrors_created or report.mirrors_removed:
            logger.info(
                f"Comment mirrors repaired: {len(report.mirrors_created)} created, "
                f"{len(report.mirrors_removed)} removed"
            )
        return report

    def reconcile_all(self) -> ReconciliationReport:
        """Run every repair across the whole store. One failing record does not stop the pass."""
        report = ReconciliationReport()

        for doc in self.store.query(self.paths.news()):
            try:
                if self.reconcile_article(doc.id):
                    report.articles_fixed.append(doc.id)
            except EngagementError as e:
                logger.error(f"Reconciling article {doc.id} failed: {e}")
                report.errors.append(f"news/{doc.id}")

        for doc in self.store.query(self.paths.movies()):
            try:
                if self.reconcile_movie(doc.id):
                    report.movies_fixed.append(doc.id)
            except EngagementError as e:
                logger.error(f"Reconciling movie {doc.id} failed: {e}")
                report.errors.append(f"movies/{doc.id}")

        try:
            self.repair_comment_mirrors(report)
        except StoreError as e:
            logger.error(f"Repairing comment mirrors failed: {e}")
            report.errors.append("comments")

        return report
