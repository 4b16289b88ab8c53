"""Offset/limit pagination for list queries."""

from typing import Any

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from domain.entities.page import MAX_LIMIT, PageMetadata


async def paginate(
    session: AsyncSession,
    stmt: Select[Any],
    page: PageMetadata,
    *order_by: Any,
) -> tuple[list[Any], int]:
    """Run ``stmt`` for one page and count all matching rows.

    Returns:
        Tuple of (models on the page, total matching rows).
    """
    count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
    total = (await session.execute(count_stmt)).scalar_one()

    limit = max(0, min(page.limit, MAX_LIMIT))
    offset = max(0, page.offset)
    page_stmt = stmt.order_by(*order_by).offset(offset).limit(limit)
    result = await session.execute(page_stmt)
    return list(result.scalars()), total
