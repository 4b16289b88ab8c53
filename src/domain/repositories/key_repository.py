"""Key repository protocol."""

from typing import Protocol
from uuid import UUID

from domain.entities.key import Key


class IKeyRepository(Protocol):
    """Repository interface for Key metadata."""

    async def save(self, key: Key) -> Key:
        """Persist key metadata."""
        ...

    async def retrieve(self, issuer_id: UUID, key_id: UUID) -> Key | None:
        """Get a key within the issuer's scope."""
        ...

    async def remove(self, issuer_id: UUID, key_id: UUID) -> bool:
        """Delete a key. Returns False when nothing was removed."""
        ...
