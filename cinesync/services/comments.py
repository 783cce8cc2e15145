"""
Comment service: canonical comments plus per-user mirror copies.

Every comment is written twice: the canonical record in comments/{id}
(listed per article) and an identical mirror in
users/{userId}/userComments/{id} (listed per author). Create, edit and
delete apply the canonical write first and the mirror write second, as two
independent store calls. A failure between them is logged and re-raised;
the pair is not rolled back, and ReconciliationService.repair_comment_mirrors
restores the pairing later.
"""

import logging

from ..exceptions import (
    InvalidInput,
    NotAuthenticated,
    NotAuthorized,
    StoreError,
    require_article,
    require_comment,
)
from ..session import SessionUser
from ..store import Document, DocumentStore, Filter, new_id
from ..store.converters import doc_to_comment, utcnow
from ..store.models import Comment

logger = logging.getLogger(__name__)

ARTICLE_TYPE_NEWS = "news"
ANONYMOUS = "Anonymous"

# Profile fields tried, in order, when resolving an author's display name
_PROFILE_NAME_FIELDS = ("username", "name", "displayName", "firstName")
# Fields of the viewer's own profile tried before their session name
_VIEWER_NAME_FIELDS = ("username", "displayName")


def _is_missing_name(name: str | None) -> bool:
    return not name or name == ANONYMOUS


class CommentService:
    """Create, edit, delete and list comments on news articles."""

    def __init__(self, store: DocumentStore):
        self.store = store
        self.paths = store.paths

    # ─────────────────────────────────────────────────────────────
    # Mutations
    # ─────────────────────────────────────────────────────────────

    def create(self, article_id: str, user: SessionUser | None, text: str) -> Comment:
        """Post a comment on an article; writes the canonical record, then the mirror."""
        if user is None:
            raise NotAuthenticated("Please login to comment")
        if not text or not text.strip():
            raise InvalidInput("Comment text is required")
        require_article(self.store.get(self.paths.article(article_id)))

        comment_id = new_id()
        data = {
            "commentId": comment_id,
            "articleId": article_id,
            "articleType": ARTICLE_TYPE_NEWS,
            "userId": user.id,
            "userName": user.display_name or ANONYMOUS,
            # Both field names are read by older clients
            "commentText": text,
            "comment": text,
            "createdAt": utcnow(),
            "approved": True,  # No moderation queue
        }

        self.store.create(self.paths.comments(), data, doc_id=comment_id)
        try:
            self.store.upsert(self.paths.user_comment(user.id, comment_id), data, merge=False)
        except StoreError:
            logger.error(f"Comment {comment_id} created without mirror for user {user.id}")
            raise

        return doc_to_comment(Document(id=comment_id, path=self.paths.comment(comment_id), data=data))

    def edit(self, comment_id: str, user: SessionUser | None, text: str) -> Comment:
        """Replace a comment's text. Last write wins; there is no version check."""
        doc = self._authorize(comment_id, user)
        if not text or not text.strip():
            raise InvalidInput("Comment text is required")

        updates = {
            "comment": text,
            "commentText": text,
            "updatedAt": utcnow(),
            "approved": True,
        }

        self.store.update(doc.path, updates)
        # Mirror always equals the canonical record
        edited = {**doc.data, **updates}
        try:
            self.store.upsert(self.paths.user_comment(user.id, comment_id), edited, merge=False)
        except StoreError:
            logger.error(f"Comment {comment_id} edited but mirror update failed for user {user.id}")
            raise

        return doc_to_comment(Document(id=doc.id, path=doc.path, data=edited))

    def delete(self, comment_id: str, user: SessionUser | None) -> None:
        """Delete a comment; removes the canonical record, then the mirror."""
        doc = self._authorize(comment_id, user)

        self.store.delete(doc.path)
        try:
            self.store.delete(self.paths.user_comment(user.id, comment_id))
        except StoreError:
            logger.error(f"Comment {comment_id} deleted but mirror remains for user {user.id}")
            raise

    def _authorize(self, comment_id: str, user: SessionUser | None) -> Document:
        """Load a comment and check the caller is its author."""
        if user is None:
            raise NotAuthenticated("Please login to manage comments")
        doc = require_comment(self.store.get(self.paths.comment(comment_id)))
        if doc.get("userId") != user.id:
            logger.warning(f"User {user.id} denied change to comment {comment_id}")
            raise NotAuthorized("Only the author may change this comment")
        return doc

    # ─────────────────────────────────────────────────────────────
    # Reads
    # ─────────────────────────────────────────────────────────────

    def list_for_article(self, article_id: str, viewer: SessionUser | None = None) -> list[Comment]:
        """Comments on an article, oldest first, with display names resolved."""
        docs = self.store.query(
            self.paths.comments(),
            where=[
                Filter("articleId", "==", article_id),
                Filter("articleType", "==", ARTICLE_TYPE_NEWS),
            ],
            order_by="createdAt",
        )

        comments = []
        for doc in docs:
            comment = doc_to_comment(doc)
            comment.user_name = self._resolve_name(comment, viewer)
            comments.append(comment)
        return comments

    def list_for_user(self, user: SessionUser | None) -> list[Comment]:
        """The caller's own comments from their mirror collection, newest first."""
        if user is None:
            raise NotAuthenticated("Please login to view your comments")
        docs = self.store.query(
            self.paths.user_comments(user.id),
            order_by="createdAt",
            descending=True,
        )
        return [doc_to_comment(doc) for doc in docs]

    def _resolve_name(self, comment: Comment, viewer: SessionUser | None) -> str:
        """
        Display name for a comment.

        Order: name stored on the comment; when the viewer wrote it, the
        viewer's profile username/displayName and then their session name;
        then the author's profile document; then "Anonymous". A failed
        profile lookup only affects comments by that user. The profile is
        read at most once per comment.
        """
        name = comment.user_name
        if not _is_missing_name(name):
            return name

        profiles: dict[str, Document | None] = {}
        if viewer is not None and comment.user_id == viewer.id:
            profile = self._profile(comment, profiles)
            for field in _VIEWER_NAME_FIELDS:
                if profile is not None and profile.get(field):
                    return profile.get(field)
            if viewer.display_name:
                return viewer.display_name

        if comment.user_id:
            profile = self._profile(comment, profiles)
            if profile is not None:
                for field in _PROFILE_NAME_FIELDS:
                    if profile.get(field):
                        return profile.get(field)

        return ANONYMOUS

    def _profile(self, comment: Comment, profiles: dict[str, Document | None]) -> Document | None:
        """The author's profile document, memoized in profiles."""
        user_id = comment.user_id
        if user_id not in profiles:
            try:
                profiles[user_id] = self.store.get(self.paths.user(user_id))
            except (StoreError, InvalidInput) as e:
                logger.warning(f"Error fetching user for comment {comment.id}: {e}")
                profiles[user_id] = None
        return profiles[user_id]
