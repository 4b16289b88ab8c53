"""Key service: issuing, revoking and resolving access keys."""

from collections.abc import Callable
from datetime import datetime, timedelta
from uuid import UUID

from core.exceptions import KeyNotFoundError, MalformedEntityError
from domain.entities.key import Identity, Key, KeyType
from domain.repositories.unit_of_work import IUnitOfWork
from domain.services.authorization import Authorizer
from infrastructure.auth.provider import ITokenCodec


class KeyService:
    """Service layer for key lifecycle."""

    def __init__(
        self,
        uow_factory: Callable[[], IUnitOfWork],
        authorizer: Authorizer,
        codec: ITokenCodec,
        login_duration: timedelta = timedelta(minutes=600),
        recovery_duration: timedelta = timedelta(minutes=5),
    ) -> None:
        self._uow_factory = uow_factory
        self._authorizer = authorizer
        self._codec = codec
        self._login_duration = login_duration
        self._recovery_duration = recovery_duration

    async def issue(self, token: str, key: Key) -> tuple[Key, str]:
        """Mint a key and its secret.

        Login and recovery keys are minted for the trusted users service, which
        has already checked the user's credentials; ``key.issuer_id`` and
        ``key.subject`` name the user. API keys require a login key as
        ``token`` and are issued by its holder.

        Args:
            token: Login key of the caller (API keys only).
            key: Requested key. ``id`` and ``issued_at`` are reassigned.

        Returns:
            Tuple of (Key, secret). The secret is not stored anywhere.

        Raises:
            MalformedEntityError: If a login or recovery key names no user.
            AuthenticationError: If an API key is requested without a valid login key.
        """
        async with self._uow_factory() as uow:
            now = datetime.utcnow()

            if key.type == KeyType.API:
                identity = await self._authorizer.identify(uow, token, login_only=True)
                new_key = Key(
                    type=KeyType.API,
                    issuer_id=identity.id,
                    subject=key.subject or identity.email,
                    issued_at=now,
                    expires_at=key.expires_at,
                )
            else:
                if key.issuer_id is None or not key.subject:
                    raise MalformedEntityError(
                        message="Login and recovery keys require an issuer and subject",
                    )
                duration = (
                    self._login_duration if key.type == KeyType.LOGIN else self._recovery_duration
                )
                new_key = Key(
                    type=key.type,
                    issuer_id=key.issuer_id,
                    subject=key.subject,
                    issued_at=now,
                    expires_at=now + duration,
                )

            saved = await uow.keys.save(new_key)
            await uow.commit()

        return saved, self._codec.encode(saved)

    async def revoke(self, token: str, key_id: UUID) -> None:
        """Remove one of the caller's keys. Revoking an absent key succeeds."""
        async with self._uow_factory() as uow:
            identity = await self._authorizer.identify(uow, token, login_only=True)
            await uow.keys.remove(identity.id, key_id)
            await uow.commit()

    async def retrieve_key(self, token: str, key_id: UUID) -> Key:
        """Get metadata of one of the caller's keys.

        Raises:
            KeyNotFoundError: If the key is absent from the caller's issuer scope.
        """
        async with self._uow_factory() as uow:
            identity = await self._authorizer.identify(uow, token, login_only=True)
            key = await uow.keys.retrieve(identity.id, key_id)
            if not key:
                raise KeyNotFoundError(str(key_id))
            return key  # type: ignore[no-any-return]

    async def identify(self, secret: str) -> Identity:
        """Resolve a live key to the identity it was issued for."""
        async with self._uow_factory() as uow:
            return await self._authorizer.identify(uow, secret)
