"""User directory protocol."""

from typing import Protocol
from uuid import UUID

from domain.entities.user import User


class IUserDirectory(Protocol):
    """Lookup of registered users owned by the users service."""

    async def get_user_by_email(self, email: str) -> User | None:
        """Get a registered user by email, None when unknown."""
        ...

    async def get_users_by_emails(self, emails: list[str]) -> list[User]:
        """Get the registered users among ``emails``."""
        ...

    async def get_users_by_ids(self, ids: list[UUID]) -> list[User]:
        """Get the registered users among ``ids``."""
        ...
