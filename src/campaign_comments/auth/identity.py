"""Caller identity resolution delegated to the authentication service.

Every comment creation resolves the caller by forwarding the bearer token to
``GET {auth_service_url}/auth/me``. Nothing is cached and nothing is retried:
one create request means exactly one remote lookup.

Failures are split in two so callers can tell them apart:
- the identity service answered and rejected the token -> AuthenticationFailure
  (carrying the remote status and message)
- the identity service could not be reached, or answered with something that
  is not an identity -> UpstreamUnavailable
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import httpx
import structlog

from campaign_comments.core.exceptions import (
    AuthenticationFailure,
    UpstreamUnavailable,
)


if TYPE_CHECKING:
    from campaign_comments.config.settings import Settings


logger = structlog.get_logger(__name__)


DEFAULT_REJECTION_MESSAGE = "Failed to authenticate user"
INVALID_RESPONSE_MESSAGE = "Invalid response from auth service"


@dataclass(frozen=True)
class Identity:
    """Caller identity as reported by the authentication service.

    ``role`` is passed through untouched; no policy is derived from it.
    """

    user_id: int
    email: str | None = None
    role: Any = None


class IdentityResolver(ABC):
    """Turns a bearer token into a verified caller identity."""

    @abstractmethod
    async def resolve(self, token: str) -> Identity:
        """Resolve the identity behind ``token``.

        Raises:
            AuthenticationFailure: The token was rejected
            UpstreamUnavailable: The token could not be checked
        """

    async def aclose(self) -> None:
        """Release any held resources."""


def _rejection_message(response: httpx.Response) -> str:
    """Extract the error message from a structured error response."""
    try:
        body = response.json()
    except ValueError:
        return DEFAULT_REJECTION_MESSAGE

    if not isinstance(body, dict):
        return DEFAULT_REJECTION_MESSAGE

    message = body.get("message") or body.get("detail")
    if isinstance(message, list):
        message = "; ".join(str(item) for item in message)

    return str(message) if message else DEFAULT_REJECTION_MESSAGE


def _parse_user_id(value: Any) -> int | None:
    """Accept an integer id or its decimal string; never coerce other types."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.isascii() and value.isdigit():
        return int(value)
    return None


def _identity_from_response(response: httpx.Response) -> Identity:
    """Map a successful /auth/me payload to an Identity."""
    try:
        payload = response.json()
    except ValueError as e:
        raise UpstreamUnavailable(INVALID_RESPONSE_MESSAGE) from e

    if not isinstance(payload, dict):
        raise UpstreamUnavailable(INVALID_RESPONSE_MESSAGE)

    user_id = _parse_user_id(payload.get("id"))
    if user_id is None:
        raise UpstreamUnavailable(INVALID_RESPONSE_MESSAGE)

    return Identity(
        user_id=user_id,
        email=payload.get("email"),
        role=payload.get("role"),
    )


class RemoteIdentityResolver(IdentityResolver):
    """Identity resolver backed by the authentication service's /auth/me."""

    def __init__(
        self,
        settings: "Settings",
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize with settings.

        Args:
            settings: Application settings (service URL and timeout)
            transport: Optional httpx transport, used by tests
        """
        self.endpoint = settings.identity_endpoint
        self._client = httpx.AsyncClient(
            timeout=settings.auth_service_timeout,
            transport=transport,
        )

    async def resolve(self, token: str) -> Identity:
        try:
            response = await self._client.get(
                self.endpoint,
                headers={"Authorization": f"Bearer {token}"},
            )
        except httpx.RequestError as e:
            logger.error(
                "identity_service_unreachable",
                endpoint=self.endpoint,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise UpstreamUnavailable from e

        if response.is_error:
            message = _rejection_message(response)
            logger.warning(
                "identity_resolution_rejected",
                status_code=response.status_code,
                message=message,
            )
            raise AuthenticationFailure(message, status_code=response.status_code)

        if not response.is_success:
            logger.error(
                "identity_service_unexpected_status",
                status_code=response.status_code,
            )
            raise UpstreamUnavailable(INVALID_RESPONSE_MESSAGE)

        identity = _identity_from_response(response)
        logger.debug("identity_resolved", resolved_user_id=identity.user_id)
        return identity

    async def aclose(self) -> None:
        await self._client.aclose()
