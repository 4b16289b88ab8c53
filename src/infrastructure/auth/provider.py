"""Key codec protocol."""

from typing import Protocol

from domain.entities.key import Key


class ITokenCodec(Protocol):
    """Protocol for turning key metadata into a signed secret and back."""

    def encode(self, key: Key) -> str:
        """
        Sign key metadata into an opaque secret.

        Args:
            key: The key to sign

        Returns:
            The secret handed to the key holder
        """
        ...

    def decode(self, secret: str) -> Key:
        """
        Verify a secret and recover the key metadata it carries.

        Expiry is not checked here; the stored key row is authoritative.

        Args:
            secret: The secret presented by a caller

        Raises:
            AuthenticationError: If the secret is malformed or its signature is invalid
        """
        ...
