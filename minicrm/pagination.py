"""Numeric-offset pagination shared by the list endpoints."""

import math
from datetime import datetime, timezone

from fastapi import Query, Request
from pydantic import BaseModel, Field
from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from minicrm.config import settings


class PageParams(BaseModel):
    page: int
    per_page: int


def page_params(
    page: int = Query(1, ge=1),
    per_page: int = Query(settings.DEFAULT_PER_PAGE, ge=1, le=settings.MAX_PER_PAGE),
) -> PageParams:
    return PageParams(page=page, per_page=per_page)


class Pagination(BaseModel):
    current_page: int
    first_page_url: str
    from_: int | None = Field(None, alias="from")
    last_page: int
    last_page_url: str
    next_page_url: str | None
    path: str
    per_page: int
    prev_page_url: str | None
    to: int | None
    total: int
    has_more_pages: bool
    on_first_page: bool

    model_config = {"populate_by_name": True}


class Page:
    """One page of ORM rows plus what is needed to describe it."""

    def __init__(self, items: list, total: int, page: int, per_page: int):
        self.items = items
        self.total = total
        self.page = page
        self.per_page = per_page

    @property
    def last_page(self) -> int:
        return max(math.ceil(self.total / self.per_page), 1)

    @property
    def first_item(self) -> int | None:
        if not self.items:
            return None
        return (self.page - 1) * self.per_page + 1

    @property
    def last_item(self) -> int | None:
        if not self.items:
            return None
        return self.first_item + len(self.items) - 1

    @property
    def has_more_pages(self) -> bool:
        return self.page < self.last_page

    def describe(self, path: str) -> Pagination:
        def url(number: int) -> str:
            return f"{path}?page={number}"

        return Pagination(
            current_page=self.page,
            first_page_url=url(1),
            from_=self.first_item,
            last_page=self.last_page,
            last_page_url=url(self.last_page),
            next_page_url=url(self.page + 1) if self.has_more_pages else None,
            path=path,
            per_page=self.per_page,
            prev_page_url=url(self.page - 1) if self.page > 1 else None,
            to=self.last_item,
            total=self.total,
            has_more_pages=self.has_more_pages,
            on_first_page=self.page <= 1,
        )


async def paginate(db: AsyncSession, query: Select, page: int, per_page: int) -> Page:
    count_query = select(func.count()).select_from(query.order_by(None).subquery())
    total = (await db.execute(count_query)).scalar_one()

    result = await db.execute(query.offset((page - 1) * per_page).limit(per_page))
    items = list(result.scalars().all())
    return Page(items, total, page, per_page)


def page_envelope(request: Request, page: Page, data: list, message: str) -> dict:
    path = str(request.url.replace(query=""))
    return {
        "data": data,
        "pagination": page.describe(path),
        "message": message,
        "timestamp": datetime.now(timezone.utc),
    }
