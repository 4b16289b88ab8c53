"""JWT key codec implementation.

Issued secrets are HS256 JWTs:
    {
        "jti": "key-uuid",
        "iss": "issuer-uuid",
        "sub": "user@example.com",
        "typ": 2,
        "iat": 1234567890,
        "exp": 1234567890
    }
"""

import logging
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from jose import JWTError, jwt

from core.config import settings
from core.exceptions import AuthenticationError, ErrorCode
from domain.entities.key import Key, KeyType

logger = logging.getLogger(__name__)


def _timestamp(value: datetime) -> int:
    return int(value.replace(tzinfo=timezone.utc).timestamp())


def _from_timestamp(value: int) -> datetime:
    return datetime.fromtimestamp(value, tz=timezone.utc).replace(tzinfo=None)


class JWTKeyCodec:
    """JWT-based codec for issued keys."""

    def __init__(
        self,
        secret_key: str = settings.jwt_secret_key,
        algorithm: str = settings.jwt_algorithm,
    ) -> None:
        self._secret_key = secret_key
        self._algorithm = algorithm

    def encode(self, key: Key) -> str:
        """
        Sign key metadata into a JWT.

        Args:
            key: The key to sign

        Returns:
            The generated JWT string
        """
        payload: dict[str, Any] = {
            "jti": str(key.id),
            "iss": str(key.issuer_id),
            "sub": key.subject,
            "typ": int(key.type),
            "iat": _timestamp(key.issued_at),
        }
        if key.expires_at is not None:
            payload["exp"] = _timestamp(key.expires_at)

        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)

    def decode(self, secret: str) -> Key:
        """
        Verify a JWT and extract the key metadata.

        Args:
            secret: The JWT to verify

        Returns:
            The key carried by the token

        Raises:
            AuthenticationError: If the token is malformed or badly signed
        """
        try:
            payload = jwt.decode(
                secret,
                self._secret_key,
                algorithms=[self._algorithm],
                options={"verify_aud": False, "verify_exp": False},
            )
            key = Key(
                id=UUID(payload["jti"]),
                type=KeyType(payload["typ"]),
                issuer_id=UUID(payload["iss"]),
                subject=payload.get("sub", ""),
                issued_at=_from_timestamp(payload["iat"]),
                expires_at=_from_timestamp(payload["exp"]) if "exp" in payload else None,
            )
        except (JWTError, KeyError, ValueError, TypeError) as exc:
            logger.debug("Rejected key: %s", exc)
            raise AuthenticationError(
                message="Invalid or expired token",
                error_code=ErrorCode.INVALID_TOKEN,
            ) from exc
        return key
