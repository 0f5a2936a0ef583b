"""Campaign comment module.

Note: Router is not exported here to avoid circular imports.
Import directly from campaign_comments.comments.router when needed.
"""

from .models import COMMENTS_TABLES_CQL, Comment
from .service import CommentNotFoundError, CommentService
from .store import CassandraCommentStore, CommentStore


__all__ = [
    "COMMENTS_TABLES_CQL",
    "CassandraCommentStore",
    "Comment",
    "CommentNotFoundError",
    "CommentService",
    "CommentStore",
]
