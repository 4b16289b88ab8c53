"""HTTP client for the users service."""

from uuid import UUID

import httpx
import structlog

from core.config import settings
from core.exceptions import ServiceUnavailableError
from domain.entities.user import User

logger = structlog.get_logger()


class HTTPUserDirectory:
    """IUserDirectory backed by the users service search endpoint.

    ``POST {base_url}/users/search`` with ``{"emails": [...]}`` or
    ``{"ids": [...]}`` returns ``{"users": [{"id": ..., "email": ...}]}``.
    """

    def __init__(
        self,
        base_url: str = settings.users_service_url,
        timeout: float = settings.users_service_timeout,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._transport = transport

    async def get_user_by_email(self, email: str) -> User | None:
        """Get a registered user by email, None when unknown."""
        users = await self.get_users_by_emails([email])
        return users[0] if users else None

    async def get_users_by_emails(self, emails: list[str]) -> list[User]:
        """Get the registered users among ``emails``."""
        if not emails:
            return []
        return await self._search({"emails": emails})

    async def get_users_by_ids(self, ids: list[UUID]) -> list[User]:
        """Get the registered users among ``ids``."""
        if not ids:
            return []
        return await self._search({"ids": [str(user_id) for user_id in ids]})

    async def _search(self, body: dict[str, list[str]]) -> list[User]:
        """Query the users service.

        Raises:
            ServiceUnavailableError: If the service answers with an error status
                or cannot be reached.
        """
        try:
            async with httpx.AsyncClient(
                base_url=self._base_url,
                timeout=self._timeout,
                transport=self._transport,
            ) as client:
                response = await client.post("/users/search", json=body)
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPStatusError as exc:
            logger.warning("users_service_error", status_code=exc.response.status_code)
            raise ServiceUnavailableError("users", f"status {exc.response.status_code}") from exc
        except httpx.TransportError as exc:
            logger.warning("users_service_unreachable", error=str(exc))
            raise ServiceUnavailableError("users", type(exc).__name__) from exc

        users = [
            User(id=UUID(item["id"]), email=item["email"])
            for item in payload.get("users", [])
        ]
        logger.debug(
            "users_resolved", requested=sum(len(v) for v in body.values()), found=len(users)
        )
        return users
