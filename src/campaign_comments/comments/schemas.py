"""Pydantic schemas for the comment API.

Wire format uses camelCase field names (``campaignId``, ``lastModifiedDate``).
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .models import Comment


MAX_CONTENT_LENGTH = 10000


class CamelModel(BaseModel):
    """Base model exchanging camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ==============================================================================
# Request Schemas
# ==============================================================================


class CreateCommentRequest(CamelModel):
    """Request to create a new comment.

    The author is never part of the body; it is resolved from the token.
    """

    content: str = Field(..., min_length=1, max_length=MAX_CONTENT_LENGTH)
    campaign_id: int

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: str) -> str:
        """Reject blank content; the text itself is stored as given."""
        if not v.strip():
            msg = "Content cannot be empty"
            raise ValueError(msg)
        return v


class UpdateCommentRequest(CamelModel):
    """Request to update a comment.

    An absent or empty ``content`` leaves the text unchanged.
    """

    content: str | None = Field(None, max_length=MAX_CONTENT_LENGTH)


# ==============================================================================
# Response Schemas
# ==============================================================================


class CommentResponse(CamelModel):
    """Response for a single comment."""

    comment_id: UUID
    content: str
    publication_date: datetime
    last_modified_date: datetime | None = None
    campaign_id: int
    citizen_id: int

    @classmethod
    def from_comment(cls, comment: Comment) -> "CommentResponse":
        """Create response from Comment entity."""
        return cls(
            comment_id=comment.comment_id,
            content=comment.content,
            publication_date=comment.publication_date,
            last_modified_date=comment.last_modified_date,
            campaign_id=comment.campaign_id,
            citizen_id=comment.citizen_id,
        )
