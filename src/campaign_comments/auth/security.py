"""Bearer token signature verification.

Guards every comment endpoint: the token must carry a valid HMAC signature,
must not be expired, and must name a subject. This is a transport-level
check only; the caller identity bound to new comments always comes from the
remote identity service (see ``campaign_comments.auth.identity``).
"""

import base64
import binascii
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from jose import JWTError, jwt

from campaign_comments.core.exceptions import AuthenticationFailure


if TYPE_CHECKING:
    from campaign_comments.config.settings import Settings


@dataclass(frozen=True)
class TokenClaims:
    """Claims extracted from a verified access token."""

    user_id: str
    email: str | None = None
    role: Any = None


def load_signing_key(settings: "Settings") -> bytes:
    """Decode the configured JWT secret into raw key bytes.

    Raises:
        RuntimeError: If the secret is missing or not valid base64
    """
    if not settings.jwt_secret:
        msg = "JWT_SECRET is not defined in environment variables"
        raise RuntimeError(msg)

    if not settings.jwt_secret_base64:
        return settings.jwt_secret.encode()

    try:
        return base64.b64decode(settings.jwt_secret, validate=True)
    except binascii.Error as e:
        msg = "JWT_SECRET is not valid base64"
        raise RuntimeError(msg) from e


class TokenVerifier:
    """Validates bearer token signature, expiry and subject."""

    def __init__(self, settings: "Settings"):
        self._key = load_signing_key(settings)
        self._algorithm = settings.jwt_algorithm

    def verify(self, token: str) -> TokenClaims:
        """Decode and validate an access token.

        Args:
            token: JWT string

        Returns:
            TokenClaims built from ``sub``, ``email`` and ``role``

        Raises:
            AuthenticationFailure: If the token is invalid, expired or has no subject
        """
        try:
            payload = jwt.decode(
                token,
                self._key,
                algorithms=[self._algorithm],
                # Subjects may be numeric ids; audience is not checked here
                options={"verify_sub": False, "verify_aud": False},
            )
        except JWTError as e:
            raise AuthenticationFailure from e

        subject = payload.get("sub")
        if subject is None or subject == "":
            raise AuthenticationFailure

        return TokenClaims(
            user_id=str(subject),
            email=payload.get("email"),
            role=payload.get("role"),
        )
