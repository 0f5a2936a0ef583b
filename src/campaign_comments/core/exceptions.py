"""Service error taxonomy.

Every failure surfaced by the service carries a machine-checkable ``code``
and an HTTP status. The application renders them with a single exception
handler (see ``campaign_comments.main``).
"""

from fastapi import status


class ServiceError(Exception):
    """Base service error."""

    default_status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: str = "service_error",
        status_code: int | None = None,
    ):
        self.message = message
        self.code = code
        self.status_code = status_code or self.default_status_code
        super().__init__(message)


class ValidationFailure(ServiceError):
    """Malformed or missing input at the request boundary."""

    default_status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = "Invalid request"):
        super().__init__(message, "validation_failure")


class AuthenticationFailure(ServiceError):
    """The credential was checked and rejected.

    Raised by the signature guard, or when the identity service explicitly
    rejects a token. ``status_code`` mirrors the identity service's status.
    """

    default_status_code = status.HTTP_401_UNAUTHORIZED

    def __init__(self, message: str = "Unauthorized", status_code: int | None = None):
        super().__init__(message, "authentication_failure", status_code)


class UpstreamUnavailable(ServiceError):
    """The credential could not be checked (identity service unreachable)."""

    default_status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    def __init__(self, message: str = "Failed to connect to auth service"):
        super().__init__(message, "upstream_unavailable")


class NotFound(ServiceError):
    """Referenced resource does not exist."""

    default_status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, message: str = "Resource not found"):
        super().__init__(message, "not_found")


class PersistenceFailure(ServiceError):
    """Store operation failed for infrastructure reasons."""

    def __init__(self, message: str = "Storage operation failed"):
        super().__init__(message, "persistence_failure")
