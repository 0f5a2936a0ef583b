"""Authentication module.

- Signature guard for incoming bearer tokens
- Remote identity resolution against the authentication service
"""

from .identity import Identity, IdentityResolver, RemoteIdentityResolver
from .security import TokenClaims, TokenVerifier


__all__ = [
    "Identity",
    "IdentityResolver",
    "RemoteIdentityResolver",
    "TokenClaims",
    "TokenVerifier",
]
