"""Authentication dependencies for FastAPI."""

from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from core.exceptions import AuthenticationError, ErrorCode

# Security scheme for OpenAPI docs
security = HTTPBearer(auto_error=False)


async def get_current_token(
    credentials: Annotated[
        HTTPAuthorizationCredentials | None,
        Depends(security),
    ],
) -> str:
    """
    Dependency to get the caller's key from the Authorization header.

    The key is passed to the service as is; the service validates it.

    Raises:
        AuthenticationError: If no bearer token is provided
    """
    if not credentials or not credentials.credentials:
        raise AuthenticationError(
            message="Authorization header required",
            error_code=ErrorCode.UNAUTHORIZED,
        )
    return credentials.credentials


# Type alias for convenience in route handlers
CurrentToken = Annotated[str, Depends(get_current_token)]
