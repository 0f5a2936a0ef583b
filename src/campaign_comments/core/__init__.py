# Core infrastructure
from campaign_comments.core.context import (
    clear_context,
    get_context,
    get_request_id,
    get_user_id,
    set_request_id,
    set_user_id,
)
from campaign_comments.core.exceptions import (
    AuthenticationFailure,
    NotFound,
    PersistenceFailure,
    ServiceError,
    UpstreamUnavailable,
    ValidationFailure,
)
from campaign_comments.core.logging import configure_structlog, get_logger
from campaign_comments.core.middleware import RequestContextMiddleware


__all__ = [
    "AuthenticationFailure",
    "NotFound",
    "PersistenceFailure",
    "RequestContextMiddleware",
    "ServiceError",
    "UpstreamUnavailable",
    "ValidationFailure",
    "clear_context",
    "configure_structlog",
    "get_context",
    "get_logger",
    "get_request_id",
    "get_user_id",
    "set_request_id",
    "set_user_id",
]
