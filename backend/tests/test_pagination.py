"""
StayHub Backend: Pagination Convention Tests
=============================================

What we test:
    ✅ totalPages == ceil(total / limit) and hasMore == page < totalPages
    ✅ Row window for a page
    ✅ Invalid page/limit rejected
    ✅ Sort parsing: direction and column whitelist
"""

import math

import pytest

from stayhub.exceptions import ValidationError
from stayhub.models.booking import Booking
from stayhub.services.pagination import build_pagination, parse_sort, resolve_page_window


class TestBuildPagination:

    @pytest.mark.parametrize("total", [0, 1, 9, 10, 11, 57, 100])
    @pytest.mark.parametrize("limit", [1, 7, 10, 100])
    def test_total_pages_and_has_more(self, total, limit):
        for page in range(1, 5):
            meta = build_pagination(total, page, limit)
            assert meta.total_pages == math.ceil(total / limit)
            assert meta.has_more == (page < meta.total_pages)

    def test_serializes_camel_case(self):
        meta = build_pagination(25, 2, 10)
        assert meta.model_dump(by_alias=True) == {
            "total": 25,
            "currentPage": 2,
            "totalPages": 3,
            "hasMore": True,
        }

    def test_last_page_has_no_more(self):
        assert build_pagination(25, 3, 10).has_more is False


class TestResolvePageWindow:

    def test_window_is_inclusive(self):
        window = resolve_page_window(3, 10)
        assert window.start == 20
        assert window.end == 29
        assert window.offset == 20

    @pytest.mark.parametrize("page,limit", [(0, 10), (-1, 10), (1, 0), (1, 101)])
    def test_invalid_values_rejected(self, page, limit):
        with pytest.raises(ValidationError):
            resolve_page_window(page, limit)


class TestParseSort:

    allowed = {"created_at": Booking.created_at, "price": Booking.price}

    def test_desc(self):
        column, descending = parse_sort("price:desc", self.allowed, "created_at:desc")
        assert column is Booking.price
        assert descending is True

    def test_anything_but_desc_is_ascending(self):
        _, descending = parse_sort("price:sideways", self.allowed, "created_at:desc")
        assert descending is False

    def test_default_used_when_missing(self):
        column, descending = parse_sort(None, self.allowed, "created_at:desc")
        assert column is Booking.created_at
        assert descending is True

    def test_unknown_column_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_sort("password:asc", self.allowed, "created_at:desc")
        assert exc_info.value.field == "sort"
