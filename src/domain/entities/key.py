"""Key domain entities."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import IntEnum
from uuid import UUID, uuid4


class KeyType(IntEnum):
    """Kind of issued key."""

    LOGIN = 0
    RECOVERY = 1
    API = 2


@dataclass
class Key:
    """Metadata of an issued access credential. The secret is never stored."""

    type: KeyType
    issuer_id: UUID | None = None
    subject: str = ""
    id: UUID = field(default_factory=uuid4)
    issued_at: datetime = field(default_factory=datetime.utcnow)
    expires_at: datetime | None = None

    def is_expired(self, now: datetime | None = None) -> bool:
        """A key with no expiry never expires."""
        if self.expires_at is None:
            return False
        return self.expires_at <= (now or datetime.utcnow())


@dataclass
class Identity:
    """Principal resolved from a key."""

    id: UUID
    email: str
