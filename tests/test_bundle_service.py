"""Unit tests for the helpers in tutorpress/services/bundles.py"""
import hashlib

import pytest

from tutorpress.models import User
from tutorpress.services.bundles import FREE_LABEL, _intval, format_price, get_avatar_url, parse_course_ids


class TestFormatPrice:
    def test_free_price_type(self):
        assert format_price("free", "50", "10") == FREE_LABEL

    def test_regular_only(self):
        assert format_price("paid", "1234.5", "") == '<span class="tutor-course-price-regular">$1,234.50</span>'

    def test_sale_strikes_regular(self):
        label = format_price("paid", 50, 25)

        assert "line-through" in label
        assert "$50.00</span>" in label
        assert label.endswith('<span class="tutor-course-price-sale">$25.00</span>')

    @pytest.mark.parametrize("regular", [None, "", "0", "abc"])
    def test_no_price_is_free(self, regular):
        assert format_price("paid", regular, None) == FREE_LABEL


class TestParseCourseIds:
    @pytest.mark.parametrize("stored,expected", [
        ("10,11,12", [10, 11, 12]),
        ("10, 11", [10, 11]),
        (["5", "6"], [5, 6]),
        ({"a": "7"}, [7]),
        ("", []),
        (None, []),
        (42, []),
    ])
    def test_parse(self, stored, expected):
        assert parse_course_ids(stored) == expected


@pytest.mark.parametrize("value,expected", [
    ("12", 12),
    ("12abc", 12),
    (" -3", -3),
    ("abc", 0),
    (None, 0),
    (7.9, 7),
    (True, 1),
])
def test_intval(value, expected):
    assert _intval(value) == expected


def test_avatar_url_uses_gravatar_hash():
    user = User(id=1, user_email=" Jane@Example.com ")
    email_hash = hashlib.md5(b"jane@example.com").hexdigest()

    assert get_avatar_url(user) == f"https://secure.gravatar.com/avatar/{email_hash}?s=96&d=mm&r=g"
