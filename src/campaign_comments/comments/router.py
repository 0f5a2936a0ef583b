"""Comment API endpoints.

Every route requires a bearer token with a valid signature. Creation
additionally forwards that token to the identity service to find the author.
"""

import structlog
from fastapi import APIRouter, Response, status

from campaign_comments.auth.dependencies import BearerToken, CurrentClaims

from .dependencies import CommentServiceDep
from .schemas import CommentResponse, CreateCommentRequest, UpdateCommentRequest


logger = structlog.get_logger(__name__)


router = APIRouter(prefix="/comments", tags=["comments"])


@router.post(
    "",
    response_model=CommentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create comment",
)
async def create_comment(
    data: CreateCommentRequest,
    # Header check runs before the signature guard: a missing or
    # non-bearer header is a 400, not a 401.
    token: BearerToken,
    _claims: CurrentClaims,
    comment_service: CommentServiceDep,
) -> CommentResponse:
    """Create a comment on a campaign, authored by the token's owner."""
    comment = await comment_service.create_comment(
        content=data.content,
        campaign_id=data.campaign_id,
        token=token,
    )
    return CommentResponse.from_comment(comment)


@router.get(
    "",
    response_model=list[CommentResponse],
    summary="List comments",
)
async def list_comments(
    _claims: CurrentClaims,
    comment_service: CommentServiceDep,
) -> list[CommentResponse]:
    """Get all comments."""
    comments = await comment_service.list_comments()
    return [CommentResponse.from_comment(comment) for comment in comments]


@router.get(
    "/campaign/{campaign_id}",
    response_model=list[CommentResponse],
    summary="List campaign comments",
)
async def list_campaign_comments(
    campaign_id: int,
    _claims: CurrentClaims,
    comment_service: CommentServiceDep,
) -> list[CommentResponse]:
    """Get all comments attached to a campaign."""
    comments = await comment_service.list_comments_by_campaign(campaign_id)
    return [CommentResponse.from_comment(comment) for comment in comments]


@router.put(
    "/{comment_id}",
    response_model=CommentResponse,
    summary="Update comment",
)
async def update_comment(
    comment_id: str,
    claims: CurrentClaims,
    comment_service: CommentServiceDep,
    data: UpdateCommentRequest | None = None,
) -> CommentResponse:
    """Update a comment's content.

    A missing body is treated as an empty one.
    """
    if data is None:
        data = UpdateCommentRequest()
    logger.debug("comment_update_requested", comment_id=comment_id, actor=claims.user_id)
    comment = await comment_service.update_comment(comment_id, content=data.content)
    return CommentResponse.from_comment(comment)


@router.delete(
    "/{comment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete comment",
)
async def delete_comment(
    comment_id: str,
    claims: CurrentClaims,
    comment_service: CommentServiceDep,
) -> Response:
    """Permanently delete a comment."""
    logger.debug("comment_delete_requested", comment_id=comment_id, actor=claims.user_id)
    await comment_service.delete_comment(comment_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
