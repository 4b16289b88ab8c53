"""Org lifecycle events published for other platform services."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from uuid import UUID


class OrgEventType(StrEnum):
    """Operation an org event reports."""

    CREATE_ORG = "create_org"
    REMOVE_ORG = "remove_org"


@dataclass
class OrgEvent:
    """An org was created or removed."""

    operation: OrgEventType
    org_id: UUID
    occurred_at: datetime = field(default_factory=datetime.utcnow)

    def encode(self) -> dict[str, str]:
        """Flat string fields, as stream entries carry them."""
        return {
            "operation": self.operation.value,
            "id": str(self.org_id),
            "occurred_at": self.occurred_at.isoformat(),
        }
