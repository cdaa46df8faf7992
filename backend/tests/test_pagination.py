import math

import pytest

from taskdesk.core.errors import ValidationError
from taskdesk.services.pagination import Page, parse_page_params
from taskdesk.services.validators import like_pattern, parse_user_id


@pytest.mark.parametrize("total", [0, 1, 9, 10, 11, 25, 100])
@pytest.mark.parametrize("limit", [1, 3, 10])
def test_page_counts_follow_ceiling_division(total, limit):
    total_pages = math.ceil(total / limit)
    for page in range(1, total_pages + 2):
        result = Page(items=[], total=total, page=page, limit=limit)
        assert result.total_pages == total_pages
        assert result.has_next is (page < total_pages)
        assert result.has_prev is (page > 1)


def test_meta_uses_requested_total_key():
    meta = Page(items=[], total=15, page=1, limit=10).meta("total_tasks")
    assert meta == {
        "current_page": 1,
        "total_pages": 2,
        "total_tasks": 15,
        "has_next": True,
        "has_prev": False,
    }


@pytest.mark.parametrize(
    "page, limit, expected",
    [
        (None, None, (1, 10)),
        ("2", "25", (2, 25)),
        ("abc", "x", (1, 10)),
        ("0", "-5", (1, 10)),
        (3, 5, (3, 5)),
        ("1.5", "", (1, 10)),
    ],
)
def test_parse_page_params(page, limit, expected):
    assert parse_page_params(page, limit) == expected


def test_parse_user_id():
    assert parse_user_id("42", "bad") == 42
    assert parse_user_id(7, "bad") == 7
    with pytest.raises(ValidationError, match="bad"):
        parse_user_id("forty-two", "bad")
    with pytest.raises(ValidationError):
        parse_user_id(True, "bad")


def test_like_pattern_escapes_wildcards():
    assert like_pattern("50%_off") == "%50\\%\\_off%"
    assert like_pattern("a\\b") == "%a\\\\b%"
