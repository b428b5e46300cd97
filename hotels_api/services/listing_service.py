"""
Hotel listing service: filtering, sorting and page-number pagination.
"""
import logging
import math
from dataclasses import dataclass
from typing import List

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from hotels_api.models import Hotel
from hotels_api.schemas import HotelListParams

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "name": Hotel.name,
    "city": Hotel.city,
    "price_per_night": Hotel.price_per_night,
}


@dataclass
class HotelPage:
    items: List[Hotel]
    total: int
    page: int
    per_page: int

    @property
    def last_page(self) -> int:
        return max(1, math.ceil(self.total / self.per_page))


def _escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _apply_filters(query, params: HotelListParams):
    # name: case-insensitive substring, city: exact and case-sensitive
    if params.name:
        query = query.where(Hotel.name.ilike(f"%{_escape_like(params.name)}%", escape="\\"))
    if params.city:
        query = query.where(Hotel.city == params.city)
    return query


async def list_hotels(db: AsyncSession, params: HotelListParams) -> HotelPage:
    """
    Get one page of hotels matching the filters, each with its ordered gallery.

    Without a sort field, hotels come in insertion (id) order. A page past
    the last one is empty but still reports the total.

    Args:
        db: Database session
        params: Filters, sort and page window (already validated)

    Returns:
        HotelPage: Hotels of the page and pagination figures
    """
    count_query = _apply_filters(select(func.count(Hotel.id)), params)
    total = (await db.execute(count_query)).scalar() or 0

    query = _apply_filters(select(Hotel).options(selectinload(Hotel.pictures)), params)
    if params.sort:
        column = SORT_COLUMNS[params.sort]
        query = query.order_by(column.desc() if params.order == "desc" else column.asc())
    query = query.order_by(Hotel.id.asc())

    query = query.offset((params.page - 1) * params.per_page).limit(params.per_page)
    result = await db.execute(query)
    hotels = list(result.scalars().all())

    logger.info(
        f"Retrieved {len(hotels)} hotel(s) (page {params.page}, per_page {params.per_page}, "
        f"total {total}, name={params.name!r}, city={params.city!r}, sort={params.sort} {params.order})"
    )

    return HotelPage(items=hotels, total=total, page=params.page, per_page=params.per_page)
