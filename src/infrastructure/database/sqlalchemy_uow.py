"""SQLAlchemy Unit of Work implementation."""

from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from infrastructure.database.repositories.sqlalchemy_group_membership_repo import (
    SQLAlchemyGroupMembershipRepository,
)
from infrastructure.database.repositories.sqlalchemy_invite_repo import (
    SQLAlchemyOrgInviteRepository,
    SQLAlchemyPlatformInviteRepository,
)
from infrastructure.database.repositories.sqlalchemy_key_repo import SQLAlchemyKeyRepository
from infrastructure.database.repositories.sqlalchemy_membership_repo import (
    SQLAlchemyMembershipRepository,
)
from infrastructure.database.repositories.sqlalchemy_org_repo import SQLAlchemyOrgRepository
from infrastructure.database.repositories.sqlalchemy_role_repo import SQLAlchemyRoleRepository


class SQLAlchemyUnitOfWork:
    """Unit of Work implementation using SQLAlchemy.

    One session (and so one transaction) per context. Leaving the context with
    an exception rolls back everything the repositories did inside it.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory
        self._session: Optional[AsyncSession] = None

    def _require_session(self) -> AsyncSession:
        if not self._session:
            raise RuntimeError("UnitOfWork not initialized. Use as context manager.")
        return self._session

    @property
    def keys(self) -> SQLAlchemyKeyRepository:
        """Get key repository."""
        return SQLAlchemyKeyRepository(self._require_session())

    @property
    def roles(self) -> SQLAlchemyRoleRepository:
        """Get platform role repository."""
        return SQLAlchemyRoleRepository(self._require_session())

    @property
    def orgs(self) -> SQLAlchemyOrgRepository:
        """Get org repository."""
        return SQLAlchemyOrgRepository(self._require_session())

    @property
    def memberships(self) -> SQLAlchemyMembershipRepository:
        """Get org membership repository."""
        return SQLAlchemyMembershipRepository(self._require_session())

    @property
    def group_memberships(self) -> SQLAlchemyGroupMembershipRepository:
        """Get group membership repository."""
        return SQLAlchemyGroupMembershipRepository(self._require_session())

    @property
    def org_invites(self) -> SQLAlchemyOrgInviteRepository:
        """Get org invite repository."""
        return SQLAlchemyOrgInviteRepository(self._require_session())

    @property
    def platform_invites(self) -> SQLAlchemyPlatformInviteRepository:
        """Get platform invite repository."""
        return SQLAlchemyPlatformInviteRepository(self._require_session())

    async def commit(self) -> None:
        """Commit the current transaction."""
        if self._session:
            await self._session.commit()

    async def rollback(self) -> None:
        """Rollback the current transaction."""
        if self._session:
            await self._session.rollback()

    async def __aenter__(self) -> "SQLAlchemyUnitOfWork":
        """Enter the context manager and create session."""
        self._session = self._session_factory()
        return self

    async def __aexit__(
        self,
        exc_type: Optional[type],
        exc_val: Optional[Exception],
        exc_tb: Any,
    ) -> None:
        """Exit the context manager and cleanup."""
        if self._session:
            if exc_type:
                await self.rollback()
            await self._session.close()
            self._session = None
