"""FastAPI dependencies for authentication.

Provides dependency injection for:
- Bearer token extraction
- Signature verification of the caller's token (route guard)
"""

from typing import Annotated

from fastapi import Depends, Header, Request

from campaign_comments.auth.security import TokenClaims, TokenVerifier
from campaign_comments.core.context import set_user_id
from campaign_comments.core.exceptions import AuthenticationFailure, ValidationFailure


BEARER_PREFIX = "Bearer "


def get_token_from_header(request: Request) -> str | None:
    """Extract Bearer token from Authorization header.

    The scheme is matched case-insensitively.

    Returns:
        Token string or None if not present
    """
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None

    expected_parts = 2
    parts = auth_header.split()
    if len(parts) != expected_parts or parts[0].lower() != "bearer":
        return None

    return parts[1]


def get_token_verifier(request: Request) -> TokenVerifier:
    """Get the token verifier from app state."""
    return request.app.state.token_verifier


async def get_current_claims(
    token: Annotated[str | None, Depends(get_token_from_header)],
    verifier: Annotated[TokenVerifier, Depends(get_token_verifier)],
) -> TokenClaims:
    """Verify the caller's access token.

    Raises:
        AuthenticationFailure: If the token is missing, invalid or expired
    """
    if not token:
        raise AuthenticationFailure

    claims = verifier.verify(token)

    # Set user_id in context for logging
    set_user_id(claims.user_id)

    return claims


def get_bearer_token(
    authorization: Annotated[str | None, Header()] = None,
) -> str:
    """Extract the raw credential forwarded to the identity service.

    Unlike the guard, this requires the exact ``Bearer `` prefix.

    Raises:
        ValidationFailure: If the header is missing or not bearer-scheme
    """
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        msg = "Missing or invalid JWT bearer token"
        raise ValidationFailure(msg)

    token = authorization[len(BEARER_PREFIX) :].strip()
    if not token:
        msg = "Missing or invalid JWT bearer token"
        raise ValidationFailure(msg)

    return token


# Type aliases for dependency injection
CurrentClaims = Annotated[TokenClaims, Depends(get_current_claims)]
BearerToken = Annotated[str, Depends(get_bearer_token)]
