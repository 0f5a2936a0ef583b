"""Database models for campaign comments.

Cassandra table definitions for:
- comments: one row per comment, keyed by comment_id
- comments_by_campaign: the same rows partitioned by campaign_id

Both tables are written together in a logged batch so a comment is never
visible in one and missing from the other.
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any
from uuid import UUID


# ==============================================================================
# CQL Table Definitions
# ==============================================================================

# Main comments table - O(1) lookup by id, full scan for listing
COMMENT_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.comments (
    comment_id UUID PRIMARY KEY,
    campaign_id BIGINT,
    citizen_id BIGINT,
    content TEXT,
    publication_date TIMESTAMP,
    last_modified_date TIMESTAMP,
    created_at TIMESTAMP,
    updated_at TIMESTAMP
)
"""

# Comments by campaign - one partition per campaign
COMMENTS_BY_CAMPAIGN_TABLE_CQL = """
CREATE TABLE IF NOT EXISTS {keyspace}.comments_by_campaign (
    campaign_id BIGINT,
    comment_id UUID,
    citizen_id BIGINT,
    content TEXT,
    publication_date TIMESTAMP,
    last_modified_date TIMESTAMP,
    created_at TIMESTAMP,
    updated_at TIMESTAMP,
    PRIMARY KEY ((campaign_id), comment_id)
)
"""

COMMENTS_TABLES_CQL = [
    COMMENT_TABLE_CQL,
    COMMENTS_BY_CAMPAIGN_TABLE_CQL,
]


# ==============================================================================
# Entities
# ==============================================================================


def _as_utc(value: datetime | None) -> datetime | None:
    """Cassandra returns naive UTC datetimes."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)


@dataclass
class Comment:
    """Comment entity.

    ``comment_id`` is None until the store has inserted the comment.
    ``last_modified_date`` stays None until the first update.
    """

    comment_id: UUID | None
    content: str
    campaign_id: int
    citizen_id: int
    publication_date: datetime
    last_modified_date: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_row(cls, row: Any) -> "Comment":
        """Create Comment from Cassandra row."""
        return cls(
            comment_id=row.comment_id,
            content=row.content,
            campaign_id=row.campaign_id,
            citizen_id=row.citizen_id,
            publication_date=_as_utc(row.publication_date),
            last_modified_date=_as_utc(row.last_modified_date),
            created_at=_as_utc(row.created_at),
            updated_at=_as_utc(row.updated_at),
        )


# ==============================================================================
# Factory Functions
# ==============================================================================


def create_comment(
    content: str,
    campaign_id: int,
    citizen_id: int,
    publication_date: datetime,
) -> Comment:
    """Create a new, not yet persisted, comment."""
    return Comment(
        comment_id=None,
        content=content,
        campaign_id=campaign_id,
        citizen_id=citizen_id,
        publication_date=publication_date,
        last_modified_date=None,
    )
