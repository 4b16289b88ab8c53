"""Pagination entities shared by list operations."""

from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

T = TypeVar("T")

DEFAULT_LIMIT = 10
MAX_LIMIT = 100


@dataclass
class PageMetadata:
    """Filters and window for list operations."""

    offset: int = 0
    limit: int = DEFAULT_LIMIT
    order: str = ""
    dir: str = "desc"
    state: str = ""
    name: str = ""
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass
class Page(Generic[T]):
    """One page of results with the total matching count."""

    items: list[T]
    total: int
    offset: int
    limit: int
