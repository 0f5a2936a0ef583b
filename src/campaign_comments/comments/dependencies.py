"""FastAPI dependencies for the comment API."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from .service import CommentService


async def get_comment_service(request: Request) -> CommentService:
    """Get comment service from app state.

    Raises:
        HTTPException(503): If the store could not be initialized at startup
    """
    comment_service = getattr(request.app.state, "comment_service", None)
    if comment_service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Comment service not available",
        )
    return comment_service


# Type alias for dependency injection
CommentServiceDep = Annotated[CommentService, Depends(get_comment_service)]
