"""
StayHub Backend: Pagination and Sort Convention
================================================

What:  The page/limit/sort rules shared by every list endpoint.

    page   1-based, default 1
    limit  rows per page, default 10, at most 100
    sort   "<column>:<asc|desc>"; ascending unless the direction is the
           literal "desc". Columns are whitelisted per resource.

    from = (page - 1) * limit          (first row, inclusive)
    to   = from + limit - 1            (last row, inclusive)
    totalPages = ceil(total / limit)
    hasMore    = page < totalPages
"""

import math
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

from sqlalchemy import ColumnElement

from stayhub.exceptions import ValidationError
from stayhub.schemas.common import PaginationMeta

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_LIMIT = 100


@dataclass(frozen=True)
class PageWindow:
    page: int
    limit: int
    start: int
    end: int

    @property
    def offset(self) -> int:
        return self.start


def resolve_page_window(page: int = DEFAULT_PAGE, limit: int = DEFAULT_LIMIT) -> PageWindow:
    """
    Validate page/limit and compute the inclusive row range.

    Raises:
        ValidationError: page < 1, or limit outside 1..100
    """
    if page < 1:
        raise ValidationError(message="page must be a positive integer", field="page")
    if limit < 1 or limit > MAX_LIMIT:
        raise ValidationError(
            message=f"limit must be between 1 and {MAX_LIMIT}", field="limit"
        )
    start = (page - 1) * limit
    return PageWindow(page=page, limit=limit, start=start, end=start + limit - 1)


def build_pagination(total: int, page: int, limit: int) -> PaginationMeta:
    total_pages = math.ceil(total / limit) if limit else 0
    return PaginationMeta(
        total=total,
        current_page=page,
        total_pages=total_pages,
        has_more=page < total_pages,
    )


def parse_sort(
    sort: Optional[str],
    allowed: Mapping[str, ColumnElement],
    default: str,
) -> Tuple[ColumnElement, bool]:
    """
    Resolve a "<column>:<direction>" string against a column whitelist.

    Returns:
        (column, descending)

    Raises:
        ValidationError: column not in the whitelist
    """
    raw = (sort or default).strip()
    column_name, _, direction = raw.partition(":")
    column_name = column_name.strip()
    if column_name not in allowed:
        raise ValidationError(
            message=f"Invalid sort column '{column_name}'",
            field="sort",
            context={"allowed": sorted(allowed)},
        )
    return allowed[column_name], direction.strip().lower() == "desc"


def order_clause(sort: Optional[str], allowed: Mapping[str, ColumnElement], default: str):
    column, descending = parse_sort(sort, allowed, default)
    return column.desc() if descending else column.asc()
