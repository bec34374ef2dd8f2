"""Pagination — tests for offset math and bound validation."""

import pytest

from app.core.errors import InvalidParameterError
from app.core.pagination import PageInfo, paginate, validate_bounds


def test_first_page():
    items, info = paginate(list(range(45)), 1, 20)
    assert items == list(range(20))
    assert info.total == 45
    assert info.total_pages == 3
    assert info.has_next
    assert not info.has_prev


def test_last_partial_page():
    items, info = paginate(list(range(45)), 3, 20)
    assert items == list(range(40, 45))
    assert not info.has_next
    assert info.has_prev


def test_out_of_range_page_is_empty_not_error():
    items, info = paginate([1, 2, 3], 5, 20)
    assert items == []
    assert info.total == 3


def test_empty_collection():
    items, info = paginate([], 1, 20)
    assert items == []
    assert info.total_pages == 0
    assert not info.has_next


@pytest.mark.parametrize("page,page_size", [(0, 20), (1, 0), (-1, 5)])
def test_invalid_page_arguments(page, page_size):
    with pytest.raises(InvalidParameterError):
        paginate([1], page, page_size)


def test_offset():
    assert PageInfo(page=3, page_size=10, total=100).offset == 20


def test_validate_bounds():
    assert validate_bounds("limit", 100, 100) == 100
    with pytest.raises(InvalidParameterError) as exc:
        validate_bounds("limit", 101, 100)
    assert exc.value.field == "limit"
    assert exc.value.http_status == 400
    with pytest.raises(InvalidParameterError):
        validate_bounds("limit", 0, 100)
