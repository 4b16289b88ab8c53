"""SQLAlchemy implementation of Key repository."""

from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import ConflictError
from domain.entities.key import Key, KeyType
from infrastructure.database.models import KeyModel


class SQLAlchemyKeyRepository:
    """SQLAlchemy implementation of IKeyRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def save(self, key: Key) -> Key:
        """Persist key metadata."""
        self._session.add(self._to_model(key))
        try:
            await self._session.flush()
        except IntegrityError as exc:
            raise ConflictError(
                message="Key already exists",
                details={"key_id": str(key.id)},
            ) from exc
        return key

    async def retrieve(self, issuer_id: UUID, key_id: UUID) -> Key | None:
        """Get a key within the issuer's scope."""
        stmt = select(KeyModel).where(
            KeyModel.id == key_id,
            KeyModel.issuer_id == issuer_id,
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def remove(self, issuer_id: UUID, key_id: UUID) -> bool:
        """Delete a key. Returns False when nothing was removed."""
        stmt = delete(KeyModel).where(
            KeyModel.id == key_id,
            KeyModel.issuer_id == issuer_id,
        )
        result = await self._session.execute(stmt)
        return bool(result.rowcount)  # type: ignore[attr-defined]

    def _to_entity(self, model: KeyModel) -> Key:
        """Convert ORM model to domain entity."""
        return Key(
            id=model.id,
            type=KeyType(model.type),
            issuer_id=model.issuer_id,
            subject=model.subject,
            issued_at=model.issued_at,
            expires_at=model.expires_at,
        )

    def _to_model(self, entity: Key) -> KeyModel:
        """Convert domain entity to ORM model."""
        return KeyModel(
            id=entity.id,
            type=int(entity.type),
            issuer_id=entity.issuer_id,
            subject=entity.subject,
            issued_at=entity.issued_at,
            expires_at=entity.expires_at,
        )
