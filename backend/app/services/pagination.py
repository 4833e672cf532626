"""Offset pagination shared by the feed and the pet listings."""

from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.services.feed_selector import normalize_page


def effective_page(
    offset: int | None, limit: int | None, *, default_limit: int | None = None
) -> tuple[int, int]:
    """Clamp page parameters against the configured defaults."""
    return normalize_page(
        offset,
        limit,
        default_limit=default_limit or settings.feed_default_page_size,
        max_limit=settings.feed_max_page_size,
        max_offset=settings.feed_max_offset,
    )


@dataclass
class Page:
    items: list[Any] = field(default_factory=list)
    total: int = 0
    offset: int = 0
    limit: int = 0

    @property
    def has_more(self) -> bool:
        return self.offset + self.limit < self.total


async def paginate(
    db: AsyncSession,
    base: Select,
    order_by: tuple,
    offset: int | None,
    limit: int | None,
) -> Page:
    """Count *base*, then fetch one ordered page of it."""
    offset, limit = effective_page(offset, limit)

    count_q = select(func.count()).select_from(base.subquery())
    total = (await db.execute(count_q)).scalar() or 0

    query = base.order_by(*order_by).offset(offset).limit(limit)
    items = list((await db.execute(query)).scalars().all())
    return Page(items=items, total=total, offset=offset, limit=limit)
