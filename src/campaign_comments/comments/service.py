"""Comment lifecycle service.

Business logic for:
- Creating comments bound to a remotely resolved caller identity
- Listing comments, globally or per campaign
- Updating and deleting comments by id

Update and delete do not check that the caller authored the comment: any
caller that passes the signature guard may change any comment.
"""

from dataclasses import replace
from datetime import UTC, datetime, timedelta
from uuid import UUID

import structlog

from campaign_comments.auth.identity import IdentityResolver
from campaign_comments.core.exceptions import NotFound

from .models import Comment, create_comment
from .store import CommentStore


logger = structlog.get_logger(__name__)


class CommentNotFoundError(NotFound):
    """Comment not found."""

    def __init__(self, comment_id: UUID | str):
        super().__init__(f"Comment with ID {comment_id} not found")


# Cassandra stores timestamps with millisecond precision
_TIMESTAMP_RESOLUTION = timedelta(milliseconds=1)


def utc_now() -> datetime:
    """Current UTC time truncated to millisecond precision."""
    now = datetime.now(UTC)
    return now.replace(microsecond=now.microsecond // 1000 * 1000)


def next_modification_time(comment: Comment) -> datetime:
    """Modification time for an update of ``comment``.

    Always strictly later than the comment's previous publication or
    modification time, even when the clock has not advanced.
    """
    now = utc_now()
    previous = comment.last_modified_date or comment.publication_date
    if now <= previous:
        return previous + _TIMESTAMP_RESOLUTION
    return now


class CommentService:
    """Service for comment management."""

    def __init__(self, store: CommentStore, identity_resolver: IdentityResolver):
        """Initialize with a comment store and an identity resolver."""
        self.store = store
        self.identity_resolver = identity_resolver

    async def create_comment(
        self,
        content: str,
        campaign_id: int,
        token: str,
    ) -> Comment:
        """Create a new comment authored by the token's owner.

        The author is resolved through the identity service on every call.
        Resolver failures propagate unchanged and nothing is persisted.
        """
        identity = await self.identity_resolver.resolve(token)

        comment = create_comment(
            content=content,
            campaign_id=campaign_id,
            citizen_id=identity.user_id,
            publication_date=utc_now(),
        )
        comment_id = await self.store.insert(comment)
        comment = replace(comment, comment_id=comment_id)

        logger.info(
            "comment_created",
            comment_id=str(comment_id),
            campaign_id=campaign_id,
            citizen_id=identity.user_id,
        )
        return comment

    async def list_comments(self) -> list[Comment]:
        """Get every comment. Unpaginated."""
        return await self.store.find_all()

    async def list_comments_by_campaign(self, campaign_id: int) -> list[Comment]:
        """Get every comment attached to a campaign. Unpaginated."""
        return await self.store.find_by_campaign(campaign_id)

    async def update_comment(
        self,
        comment_id: UUID | str,
        content: str | None = None,
    ) -> Comment:
        """Update a comment's content.

        Content is only replaced when a non-empty value is given, but the
        modification time is stamped on every accepted call.

        Raises:
            CommentNotFoundError: If no comment has this id
        """
        comment = await self.store.find_by_id(comment_id)
        if comment is None:
            raise CommentNotFoundError(comment_id)

        updated = replace(
            comment,
            content=content or comment.content,
            last_modified_date=next_modification_time(comment),
        )

        # Deleted between the lookup and the write
        if not await self.store.replace(comment_id, updated):
            raise CommentNotFoundError(comment_id)

        logger.info(
            "comment_updated",
            comment_id=str(comment.comment_id),
            content_changed=updated.content != comment.content,
        )
        return updated

    async def delete_comment(self, comment_id: UUID | str) -> None:
        """Permanently delete a comment.

        Raises:
            CommentNotFoundError: If no comment has this id
        """
        if not await self.store.delete_by_id(comment_id):
            raise CommentNotFoundError(comment_id)

        logger.info("comment_deleted", comment_id=str(comment_id))
