"""Common Pydantic schemas shared across the API."""

from typing import Any

from pydantic import BaseModel

from domain.entities.user import normalize_email


class ErrorResponse(BaseModel):
    """Standardized error response."""

    error_code: str
    message: str
    details: Any | None = None


class PageMeta(BaseModel):
    """Pagination metadata of list responses."""

    total: int
    offset: int
    limit: int


def check_email(value: str) -> str:
    """Basic email validation shared by request schemas."""
    value = normalize_email(value)
    if "@" not in value or "." not in value.split("@")[-1]:
        raise ValueError("Invalid email address")
    return value
