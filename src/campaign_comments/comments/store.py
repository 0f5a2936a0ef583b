"""Comment persistence.

``CommentStore`` is the contract the lifecycle service depends on.
``CassandraCommentStore`` implements it on top of the two tables declared
in ``campaign_comments.comments.models``.
"""

from abc import ABC, abstractmethod
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any
from uuid import UUID, uuid4

import structlog
from cassandra import DriverException, OperationTimedOut
from cassandra.cluster import NoHostAvailable
from cassandra.query import BatchStatement, BatchType

from campaign_comments.core.exceptions import PersistenceFailure

from .models import Comment


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = structlog.get_logger(__name__)


def parse_comment_id(comment_id: UUID | str) -> UUID | None:
    """Parse an opaque comment id; None when it cannot name any comment."""
    if isinstance(comment_id, UUID):
        return comment_id
    try:
        return UUID(str(comment_id))
    except ValueError:
        return None


class CommentStore(ABC):
    """Abstract interface for comment persistence.

    Absent ids are reported as ``None``/``False``; infrastructure errors
    raise ``PersistenceFailure``.
    """

    @abstractmethod
    async def insert(self, comment: Comment) -> UUID:
        """Persist a new comment and return its freshly assigned id."""

    @abstractmethod
    async def find_by_id(self, comment_id: UUID | str) -> Comment | None:
        """Fetch a single comment."""

    @abstractmethod
    async def find_all(self) -> list[Comment]:
        """Fetch every comment, in store iteration order."""

    @abstractmethod
    async def find_by_campaign(self, campaign_id: int) -> list[Comment]:
        """Fetch every comment attached to a campaign."""

    @abstractmethod
    async def replace(self, comment_id: UUID | str, comment: Comment) -> bool:
        """Overwrite the mutable fields of an existing comment.

        ``comment`` must carry the stored ``campaign_id``. Returns False when
        the comment no longer exists at write time.
        """

    @abstractmethod
    async def delete_by_id(self, comment_id: UUID | str) -> bool:
        """Permanently remove a comment."""

    async def is_ready(self) -> bool:
        """Whether the backing storage is reachable."""
        return True


class CassandraCommentStore(CommentStore):
    """Comment store backed by Cassandra.

    Inserts and deletes go to both ``comments`` and ``comments_by_campaign``
    inside one logged batch. Updates are conditional (``IF EXISTS``) per table.
    """

    def __init__(self, session: "Session", keyspace: str):
        """Initialize with Cassandra session."""
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for efficient queries."""
        self._insert_comment = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.comments
            (comment_id, campaign_id, citizen_id, content, publication_date,
             last_modified_date, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """)

        self._insert_comment_by_campaign = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.comments_by_campaign
            (campaign_id, comment_id, citizen_id, content, publication_date,
             last_modified_date, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """)

        self._get_comment = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.comments
            WHERE comment_id = ?
        """)

        self._get_all_comments = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.comments
        """)

        self._get_comments_by_campaign = self.session.prepare(f"""
            SELECT * FROM {self.keyspace}.comments_by_campaign
            WHERE campaign_id = ?
        """)

        self._update_comment = self.session.prepare(f"""
            UPDATE {self.keyspace}.comments
            SET content = ?, last_modified_date = ?, updated_at = ?
            WHERE comment_id = ?
            IF EXISTS
        """)

        self._update_comment_by_campaign = self.session.prepare(f"""
            UPDATE {self.keyspace}.comments_by_campaign
            SET content = ?, last_modified_date = ?, updated_at = ?
            WHERE campaign_id = ? AND comment_id = ?
            IF EXISTS
        """)

        self._delete_comment = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.comments
            WHERE comment_id = ?
        """)

        self._delete_comment_by_campaign = self.session.prepare(f"""
            DELETE FROM {self.keyspace}.comments_by_campaign
            WHERE campaign_id = ? AND comment_id = ?
        """)

    async def _execute(self, statement: Any, parameters: list[Any] | None = None) -> Any:
        """Run a statement, translating driver errors into PersistenceFailure."""
        try:
            return await self.session.aexecute(statement, parameters)
        except (DriverException, NoHostAvailable, OperationTimedOut) as e:
            logger.error(
                "comment_store_query_failed",
                error=str(e),
                error_type=type(e).__name__,
            )
            raise PersistenceFailure from e

    async def insert(self, comment: Comment) -> UUID:
        comment_id = uuid4()
        now = datetime.now(UTC)

        batch = BatchStatement(batch_type=BatchType.LOGGED)
        batch.add(
            self._insert_comment,
            [
                comment_id,
                comment.campaign_id,
                comment.citizen_id,
                comment.content,
                comment.publication_date,
                comment.last_modified_date,
                now,
                now,
            ],
        )
        batch.add(
            self._insert_comment_by_campaign,
            [
                comment.campaign_id,
                comment_id,
                comment.citizen_id,
                comment.content,
                comment.publication_date,
                comment.last_modified_date,
                now,
                now,
            ],
        )
        await self._execute(batch)

        return comment_id

    async def find_by_id(self, comment_id: UUID | str) -> Comment | None:
        parsed_id = parse_comment_id(comment_id)
        if parsed_id is None:
            return None

        result = await self._execute(self._get_comment, [parsed_id])
        row = result.one()
        return Comment.from_row(row) if row else None

    async def find_all(self) -> list[Comment]:
        rows = await self._execute(self._get_all_comments)
        return [Comment.from_row(row) for row in rows]

    async def find_by_campaign(self, campaign_id: int) -> list[Comment]:
        rows = await self._execute(self._get_comments_by_campaign, [campaign_id])
        return [Comment.from_row(row) for row in rows]

    async def replace(self, comment_id: UUID | str, comment: Comment) -> bool:
        parsed_id = parse_comment_id(comment_id)
        if parsed_id is None:
            return False

        # IF EXISTS: an update never recreates a row deleted concurrently
        now = datetime.now(UTC)
        result = await self._execute(
            self._update_comment,
            [comment.content, comment.last_modified_date, now, parsed_id],
        )
        if not result.was_applied:
            return False

        # campaign_id is immutable, so the stored comment names the partition
        result = await self._execute(
            self._update_comment_by_campaign,
            [
                comment.content,
                comment.last_modified_date,
                now,
                comment.campaign_id,
                parsed_id,
            ],
        )
        if not result.was_applied:
            logger.info("comment_deleted_during_update", comment_id=str(parsed_id))
        return True

    async def delete_by_id(self, comment_id: UUID | str) -> bool:
        existing = await self.find_by_id(comment_id)
        if existing is None:
            return False

        batch = BatchStatement(batch_type=BatchType.LOGGED)
        batch.add(self._delete_comment, [existing.comment_id])
        batch.add(
            self._delete_comment_by_campaign,
            [existing.campaign_id, existing.comment_id],
        )
        await self._execute(batch)
        return True

    async def is_ready(self) -> bool:
        return not self.session.is_shutdown
