"""
Offset pagination shared by counter and ticket listings.
"""

import math
from dataclasses import dataclass
from typing import Generic, TypeVar

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    items: list[T]
    total: int
    current_page: int
    per_page: int

    @property
    def total_page(self) -> int:
        return math.ceil(self.total / self.per_page)

    def pagination(self) -> dict[str, int]:
        return {
            "total": self.total,
            "current_page": self.current_page,
            "per_page": self.per_page,
            "total_page": self.total_page,
        }


async def paginate(db: AsyncSession, query: Select, page: int, limit: int) -> Page:
    if page < 1 or limit < 1:
        raise ValueError(f"page and limit must be >= 1 (got page={page}, limit={limit})")

    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total = (await db.execute(count_query)).scalar_one()

    result = await db.execute(
        query
        .offset((page - 1) * limit)
        .limit(limit)
        .execution_options(populate_existing=True)
    )
    return Page(items=list(result.scalars().all()), total=total, current_page=page, per_page=limit)
