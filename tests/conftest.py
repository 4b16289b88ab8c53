"""Pytest configuration and fixtures."""

import os
import sys
from collections.abc import AsyncGenerator, Generator
from pathlib import Path
from typing import Any
from uuid import UUID, uuid4

# Disable rate limiting in tests
os.environ["RATE_LIMIT_ENABLED"] = "false"

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.pool import StaticPool

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from domain.entities.invite import OrgInvite, PlatformInvite
from domain.entities.key import Key, KeyType
from domain.entities.user import User
from domain.services.auth_service import AuthService
from infrastructure.auth.jwt_provider import JWTKeyCodec
from infrastructure.database.models import Base
from infrastructure.database.session import create_engine, create_session_factory
from infrastructure.database.sqlalchemy_uow import SQLAlchemyUnitOfWork


# Compile JSONB as JSON for SQLite (used in tests)
@compiles(JSONB, "sqlite")
def _compile_jsonb_sqlite(type_: Any, compiler: Any, **kw: Any) -> str:
    return "JSON"


# Test database URL (SQLite in memory)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TEST_SECRET_KEY = "test-secret-key"


class FakeUserDirectory:
    """In-memory stand-in for the users service."""

    def __init__(self) -> None:
        self.users: dict[UUID, User] = {}

    def register(self, email: str) -> User:
        user = User(id=uuid4(), email=email)
        self.users[user.id] = user
        return user

    async def get_user_by_email(self, email: str) -> User | None:
        return next((u for u in self.users.values() if u.email == email), None)

    async def get_users_by_emails(self, emails: list[str]) -> list[User]:
        return [u for u in self.users.values() if u.email in emails]

    async def get_users_by_ids(self, ids: list[UUID]) -> list[User]:
        return [self.users[i] for i in ids if i in self.users]


class RecordingNotifier:
    """Invite notifier that keeps every delivery for assertions."""

    def __init__(self) -> None:
        self.org_invites: list[tuple[OrgInvite, str]] = []
        self.platform_invites: list[tuple[PlatformInvite, str, str]] = []

    async def org_invite_created(self, invite: OrgInvite, redirect_path: str) -> None:
        self.org_invites.append((invite, redirect_path))

    async def platform_invite_created(
        self, invite: PlatformInvite, redirect_path: str, org_name: str = ""
    ) -> None:
        self.platform_invites.append((invite, redirect_path, org_name))


@pytest.fixture
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Fresh in-memory database per test, with foreign keys enforced."""
    engine = create_engine(TEST_DATABASE_URL, poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create session factory."""
    return create_session_factory(engine)


@pytest.fixture
def uow_factory(session_factory: async_sessionmaker[AsyncSession]) -> Any:
    """Create a UoW factory bound to the test database."""

    def factory() -> SQLAlchemyUnitOfWork:
        return SQLAlchemyUnitOfWork(session_factory)

    return factory


@pytest.fixture
def codec() -> JWTKeyCodec:
    """Create key codec for testing."""
    return JWTKeyCodec(secret_key=TEST_SECRET_KEY, algorithm="HS256")


@pytest.fixture
def users() -> FakeUserDirectory:
    return FakeUserDirectory()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def auth_service(
    uow_factory: Any,
    codec: JWTKeyCodec,
    users: FakeUserDirectory,
    notifier: RecordingNotifier,
) -> AuthService:
    """Facade over the test database."""
    return AuthService(uow_factory, codec=codec, users=users, notifier=notifier)


async def login(service: AuthService, user: User) -> str:
    """Issue a login key for ``user`` and return its secret."""
    _, secret = await service.issue(
        "", Key(type=KeyType.LOGIN, issuer_id=user.id, subject=user.email)
    )
    return secret


@pytest.fixture
def app(auth_service: AuthService) -> Generator[FastAPI, None, None]:
    """Application with the facade bound to the test database."""
    from api.v1.dependencies import get_auth_service
    from main import create_app

    app = create_app()
    app.dependency_overrides[get_auth_service] = lambda: auth_service
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Async test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
