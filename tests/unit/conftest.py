"""Shared fixtures for unit tests."""

from typing import Any
from unittest.mock import AsyncMock, MagicMock
from uuid import UUID, uuid4

import pytest

from domain.entities.key import Identity
from domain.entities.org import Org


class FakeUnitOfWork:
    """Fake Unit of Work with all 7 repository mocks for unit testing."""

    def __init__(self) -> None:
        self.keys = AsyncMock()
        self.roles = AsyncMock()
        self.orgs = AsyncMock()
        self.memberships = AsyncMock()
        self.group_memberships = AsyncMock()
        self.org_invites = AsyncMock()
        self.platform_invites = AsyncMock()
        self.commits = 0
        self.rolled_back = False

    @property
    def committed(self) -> bool:
        return self.commits > 0

    async def commit(self) -> None:
        self.commits += 1

    async def rollback(self) -> None:
        self.rolled_back = True

    async def __aenter__(self) -> "FakeUnitOfWork":
        return self

    async def __aexit__(self, exc_type: Any, *args: Any) -> None:
        if exc_type:
            await self.rollback()


@pytest.fixture
def uow() -> FakeUnitOfWork:
    """Create a fresh FakeUnitOfWork."""
    return FakeUnitOfWork()


@pytest.fixture
def user_id() -> UUID:
    """A random user ID."""
    return uuid4()


@pytest.fixture
def org_id() -> UUID:
    """A random org ID."""
    return uuid4()


@pytest.fixture
def identity(user_id: UUID) -> Identity:
    """Identity of the caller."""
    return Identity(id=user_id, email="caller@example.com")


@pytest.fixture
def org(org_id: UUID, user_id: UUID) -> Org:
    """Org owned by the caller."""
    return Org(id=org_id, owner_id=user_id, name="Acme")


@pytest.fixture
def authorizer(identity: Identity, org: Org) -> MagicMock:
    """Authorizer that lets the caller through every check."""
    mock = MagicMock()
    mock.identify = AsyncMock(return_value=identity)
    mock.is_root_admin = AsyncMock(return_value=False)
    mock.platform_role = AsyncMock(return_value=None)
    mock.require_root_admin = AsyncMock()
    mock.require_platform_admin = AsyncMock()
    mock.require_org_role = AsyncMock(return_value=org)
    return mock
