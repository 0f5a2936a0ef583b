"""Shared fixtures for the campaign comments test suite."""

import base64
import os
from dataclasses import replace
from datetime import UTC, datetime, timedelta
from uuid import UUID, uuid4


TEST_JWT_SECRET = base64.b64encode(b"campaign-comments-test-signing-key").decode()

# Must be set before the application module is imported
os.environ.setdefault("JWT_SECRET", TEST_JWT_SECRET)
os.environ.setdefault("ENVIRONMENT", "testing")
os.environ.setdefault("LOG_TO_FILE", "false")

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from jose import jwt  # noqa: E402

from campaign_comments.auth.identity import Identity, IdentityResolver  # noqa: E402
from campaign_comments.comments.models import Comment  # noqa: E402
from campaign_comments.comments.store import CommentStore, parse_comment_id  # noqa: E402
from campaign_comments.config import Settings  # noqa: E402
from campaign_comments.core.exceptions import AuthenticationFailure  # noqa: E402
from campaign_comments.main import create_app  # noqa: E402


class InMemoryCommentStore(CommentStore):
    """Comment store keeping rows in insertion order."""

    def __init__(self) -> None:
        self.rows: dict[UUID, Comment] = {}

    async def insert(self, comment: Comment) -> UUID:
        comment_id = uuid4()
        self.rows[comment_id] = replace(comment, comment_id=comment_id)
        return comment_id

    async def find_by_id(self, comment_id: UUID | str) -> Comment | None:
        parsed_id = parse_comment_id(comment_id)
        if parsed_id is None:
            return None
        return self.rows.get(parsed_id)

    async def find_all(self) -> list[Comment]:
        return list(self.rows.values())

    async def find_by_campaign(self, campaign_id: int) -> list[Comment]:
        return [c for c in self.rows.values() if c.campaign_id == campaign_id]

    async def replace(self, comment_id: UUID | str, comment: Comment) -> bool:
        parsed_id = parse_comment_id(comment_id)
        if parsed_id is None or parsed_id not in self.rows:
            return False
        self.rows[parsed_id] = replace(comment, comment_id=parsed_id)
        return True

    async def delete_by_id(self, comment_id: UUID | str) -> bool:
        parsed_id = parse_comment_id(comment_id)
        if parsed_id is None or parsed_id not in self.rows:
            return False
        del self.rows[parsed_id]
        return True


class StaticIdentityResolver(IdentityResolver):
    """Resolver mapping known tokens to identities, counting lookups."""

    def __init__(self, identities: dict[str, Identity] | None = None) -> None:
        self.identities = identities or {}
        self.calls: list[str] = []
        self.error: Exception | None = None

    async def resolve(self, token: str) -> Identity:
        self.calls.append(token)
        if self.error is not None:
            raise self.error
        identity = self.identities.get(token)
        if identity is None:
            raise AuthenticationFailure("Invalid token", status_code=401)
        return identity


@pytest.fixture
def settings() -> Settings:
    """Settings for tests (no file logging, fixed secret)."""
    return Settings(
        jwt_secret=TEST_JWT_SECRET,
        environment="testing",
        log_to_file=False,
        log_requests=False,
        auth_service_url="http://identity.test",
    )


def make_token(
    subject: str | int | None = "42",
    expires_in: timedelta = timedelta(minutes=15),
    secret: str = TEST_JWT_SECRET,
    **claims,
) -> str:
    """Sign a bearer token with the test key."""
    payload = {"exp": datetime.now(UTC) + expires_in, **claims}
    if subject is not None:
        payload["sub"] = subject
    return jwt.encode(payload, base64.b64decode(secret), algorithm="HS256")


@pytest.fixture
def token() -> str:
    """A valid token whose owner the identity resolver knows."""
    return make_token("42", email="citizen@example.com")


@pytest.fixture
def comment_store() -> InMemoryCommentStore:
    return InMemoryCommentStore()


@pytest.fixture
def identity_resolver(token: str) -> StaticIdentityResolver:
    return StaticIdentityResolver(
        {token: Identity(user_id=42, email="citizen@example.com", role="CITIZEN")}
    )


@pytest.fixture
def client(
    settings: Settings,
    comment_store: InMemoryCommentStore,
    identity_resolver: StaticIdentityResolver,
) -> TestClient:
    """Test client wired to in-memory collaborators."""
    app = create_app(
        settings,
        comment_store=comment_store,
        identity_resolver=identity_resolver,
    )
    return TestClient(app)


@pytest.fixture
def auth_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
