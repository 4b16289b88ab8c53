"""Platform role entities."""

from dataclasses import dataclass
from enum import StrEnum
from uuid import UUID


class PlatformRole(StrEnum):
    """Platform-scoped role, distinct from org membership roles."""

    ROOT_ADMIN = "root"
    ADMIN = "admin"


@dataclass
class RoleAssignment:
    """One platform role per user."""

    user_id: UUID
    role: PlatformRole


class AuthzSubject(StrEnum):
    """What an authorization request is checked against."""

    ROOT = "root"
    ORG = "org"


@dataclass
class AuthzRequest:
    """Authorization question: may the token holder perform ``action`` on ``object``.

    For the ``root`` subject object and action are ignored. For the ``org``
    subject object is the org ID and action the minimum org role.
    """

    token: str
    subject: str
    object: str = ""
    action: str = ""
