"""
Shared pagination contract for the post and comment listings.

``paginate`` issues two statements inside the caller's session: a
``COUNT(*)`` over the unpaged selection and the ``LIMIT/OFFSET`` page
itself, ordered by primary key so consecutive pages never overlap.
"""
import math
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.exceptions import InvalidArgument, store_errors

T = TypeVar("T")


@dataclass
class Page(Generic[T]):
    items: list[T] = field(default_factory=list)
    page: int = 1
    page_size: int = settings.DEFAULT_PAGE_SIZE
    total_count: int = 0

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_count / self.page_size) if self.total_count > 0 else 0


def validate_page_params(limit: int, page: int) -> tuple[int, int]:
    """
    Return ``(page_size, page)`` for a request, clamping *limit* to
    ``settings.MAX_PAGE_SIZE``.

    Raises ``InvalidArgument`` for ``limit <= 0`` or ``page < 1``.
    """
    if limit <= 0:
        raise InvalidArgument(f"limit must be a positive integer, got {limit}")
    if page < 1:
        raise InvalidArgument(f"page must be 1 or greater, got {page}")
    return min(limit, settings.MAX_PAGE_SIZE), page


async def paginate(db: AsyncSession, stmt: Select, model, limit: int, page: int) -> Page:
    page_size, page = validate_page_params(limit, page)

    count_q = select(func.count()).select_from(stmt.order_by(None).subquery())
    rows_q = stmt.order_by(model.id).offset((page - 1) * page_size).limit(page_size)

    with store_errors(f"paginate {model.__tablename__}"):
        total: int = (await db.execute(count_q)).scalar_one()
        result = await db.execute(rows_q)
        items = list(result.scalars().all())

    return Page(items=items, page=page, page_size=page_size, total_count=total)
