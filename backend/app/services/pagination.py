"""
Inkpost API: Offset Pagination
================================

What:  Runs a SELECT one page at a time and builds the `links` / `meta`
       blocks of a paginated response.
How:   Two queries per page: COUNT(*) over the filtered statement, then the
       statement itself with LIMIT/OFFSET.

Page arithmetic (per_page = 10, total = 23):
    page 1 → rows 1-10   from=1  to=10
    page 3 → rows 21-23  from=21 to=23
    page 4 → no rows     from=null to=null
    last_page = max(ceil(total / per_page), 1)

Why offset (not cursor) pagination here:
    Clients page through posts with `?page=N` and need `last_page`/`total`
    to render page numbers, which a cursor cannot give them.
"""

import math
from dataclasses import dataclass
from typing import Any, Generic, List, TypeVar

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.datastructures import URL

from app.schemas.common import PaginationLinks, PaginationMeta

T = TypeVar("T")

PER_PAGE = 10


@dataclass
class Page(Generic[T]):
    items: List[T]
    total: int
    page: int
    per_page: int

    @property
    def last_page(self) -> int:
        return max(math.ceil(self.total / self.per_page), 1)

    def links(self, url: URL) -> PaginationLinks:
        """Neighbouring page URLs, built from the URL of the current request."""
        def page_url(n: int) -> str:
            return str(url.include_query_params(page=n))

        return PaginationLinks(
            first=page_url(1),
            last=page_url(self.last_page),
            prev=page_url(self.page - 1) if self.page > 1 else None,
            next=page_url(self.page + 1) if self.page < self.last_page else None,
        )

    def meta(self, url: URL) -> PaginationMeta:
        first_index = (self.page - 1) * self.per_page + 1
        return PaginationMeta(
            current_page=self.page,
            from_=first_index if self.items else None,
            last_page=self.last_page,
            path=str(url.replace(query="")),
            per_page=self.per_page,
            to=first_index + len(self.items) - 1 if self.items else None,
            total=self.total,
        )


async def paginate(
    db: AsyncSession,
    stmt: Select[Any],
    page: int = 1,
    per_page: int = PER_PAGE,
) -> Page[Any]:
    """
    Executes `stmt` for one page.

    `stmt` must already carry its ORDER BY; the count query drops it.
    Loader options on `stmt` apply to the page query only.
    """
    count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
    total = (await db.execute(count_stmt)).scalar_one()

    result = await db.execute(stmt.limit(per_page).offset((page - 1) * per_page))
    items = list(result.scalars().all())
    return Page(items=items, total=total, page=page, per_page=per_page)
