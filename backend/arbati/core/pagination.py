"""Pagination and sorting shared by the list endpoints."""
import math
from typing import Dict, Tuple

from fastapi import Query
from sqlalchemy.orm import Query as OrmQuery

from arbati.core.config import settings


class PageParams:
    """Query parameters for list endpoints: page, pageSize, search, sortBy, sortOrder."""

    def __init__(
        self,
        page: int = Query(1, ge=1),
        page_size: int = Query(settings.DEFAULT_PAGE_SIZE, alias="pageSize", ge=1),
        search: str | None = Query(None),
        sort_by: str | None = Query(None, alias="sortBy"),
        sort_order: str | None = Query(None, alias="sortOrder", pattern="^(asc|desc)$"),
    ):
        self.page = page
        self.page_size = min(page_size, settings.MAX_PAGE_SIZE)
        self.search = search.strip() if search else None
        self.sort_by = sort_by
        self.sort_order = sort_order

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size


def pagination_envelope(page: int, page_size: int, total: int) -> Dict[str, int]:
    return {
        "page": page,
        "pageSize": page_size,
        "total": total,
        "totalPages": math.ceil(total / page_size) if page_size else 0,
    }


def apply_sort(
    query: OrmQuery,
    params: PageParams,
    columns: Dict[str, object],
    default: str,
    default_order: str = "asc",
) -> OrmQuery:
    """Order by a whitelisted column. Unknown sortBy values fall back to the default column."""
    column = columns.get(params.sort_by or default, columns[default])
    order = params.sort_order or default_order
    return query.order_by(column.desc() if order == "desc" else column.asc())


def paginate(query: OrmQuery, params: PageParams) -> Tuple[list, Dict[str, int]]:
    total = query.order_by(None).count()
    rows = query.offset(params.offset).limit(params.page_size).all()
    return rows, pagination_envelope(params.page, params.page_size, total)
