"""Tests for amount parsing and formatting."""

from decimal import Decimal

import pytest
from cashledger.utils.amount_parser import format_amount, parse_amount


@pytest.mark.parametrize(
    "text, expected",
    [
        ("50000", Decimal("50000")),
        ("$ 50.000", Decimal("50000")),
        ("50,000", Decimal("50000")),
        ("1.250.000", Decimal("1250000")),
        ("COP 20.000,50", Decimal("20000.50")),
        ("1,250,000.75", Decimal("1250000.75")),
        ("12,5", Decimal("12.5")),
        ("-20000", Decimal("-20000")),
        ("(20.000)", Decimal("-20000")),
    ],
)
def test_parse_amount(text, expected):
    assert parse_amount(text) == expected


@pytest.mark.parametrize("text", ["", "   ", "abc", "$", "1.23.4567"])
def test_parse_amount_rejects_garbage(text):
    with pytest.raises(ValueError):
        parse_amount(text)


def test_format_amount():
    assert format_amount(Decimal("1250000")) == "$ 1.250.000"
    assert format_amount(Decimal("0")) == "$ 0"
    assert format_amount(Decimal("-20000.00")) == "-$ 20.000"
    assert format_amount(Decimal("1500.5")) == "$ 1.500,50"
