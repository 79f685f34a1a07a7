"""
Unit Tests for money formatting
"""

import pytest

from shared.money import format_money


class TestFormatMoney:
    """Amounts are in thousands."""

    @pytest.mark.parametrize("amount,expected", [
        (80000, "$80.0M"),
        (1000, "$1.0M"),
        (38880, "$38.9M"),
        (795, "$795K"),
        (0, "$0K"),
    ])
    def test_format(self, amount, expected):
        assert format_money(amount) == expected

    def test_negative_millions(self):
        assert format_money(-12500) == "$-12.5M"
