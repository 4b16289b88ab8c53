"""User records resolved through the users service."""

from dataclasses import dataclass
from uuid import UUID


@dataclass
class User:
    """Registered user as known to the user directory."""

    id: UUID
    email: str


def normalize_email(email: str) -> str:
    """Canonical form used for email lookups and comparisons."""
    return email.lower().strip()
