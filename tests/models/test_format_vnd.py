import pytest

from rentledger.models import format_vnd, parse_vnd


class TestFormatVnd:
    @pytest.mark.parametrize(
        ("amount", "expected"),
        [(0, "0"), (999, "999"), (1000, "1.000"), (1500000, "1.500.000"), (3275000, "3.275.000")],
    )
    def test_format(self, amount, expected):
        assert format_vnd(amount) == expected


class TestParseVnd:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("1500000", 1500000),
            ("1.500.000", 1500000),
            ("1,500,000", 1500000),
            (" 400 000 ", 400000),
            ("600.000đ", 600000),
        ],
    )
    def test_parse(self, value, expected):
        assert parse_vnd(value) == expected

    @pytest.mark.parametrize("value", ["", "abc", "-5", "1.5e6"])
    def test_invalid(self, value):
        assert parse_vnd(value) is None
