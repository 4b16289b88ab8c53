"""Unit of Work protocol."""

from typing import Protocol

from domain.repositories.group_membership_repository import IGroupMembershipRepository
from domain.repositories.invite_repository import (
    IOrgInviteRepository,
    IPlatformInviteRepository,
)
from domain.repositories.key_repository import IKeyRepository
from domain.repositories.membership_repository import IMembershipRepository
from domain.repositories.org_repository import IOrgRepository
from domain.repositories.role_repository import IRoleRepository


class IUnitOfWork(Protocol):
    """Unit of Work interface for managing transactions."""

    keys: IKeyRepository
    roles: IRoleRepository
    orgs: IOrgRepository
    memberships: IMembershipRepository
    group_memberships: IGroupMembershipRepository
    org_invites: IOrgInviteRepository
    platform_invites: IPlatformInviteRepository

    async def commit(self) -> None:
        """Commit the current transaction."""
        ...

    async def rollback(self) -> None:
        """Rollback the current transaction."""
        ...

    async def __aenter__(self) -> "IUnitOfWork":
        """Enter the context manager."""
        ...

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # type: ignore
        """Exit the context manager."""
        ...
