"""
Tests for percentage-of-base figures.
"""

from decimal import Decimal

import pytest
from hypothesis import given
from hypothesis import strategies as st

from books_reporting.percentages import NO_DATA, format_percentage, percentage_of

money = st.decimals(
    min_value=Decimal("-1000000000"),
    max_value=Decimal("1000000000"),
    places=2,
    allow_nan=False,
    allow_infinity=False,
)


class TestPercentageOf:
    """Tests for percentage_of."""

    def test_simple(self):
        assert percentage_of(Decimal("300"), Decimal("1000")) == Decimal("30")

    def test_zero_base_is_no_data(self):
        assert percentage_of(Decimal("300"), Decimal("0")) is NO_DATA

    def test_negative_base_keeps_amount_sign(self):
        assert percentage_of(Decimal("50"), Decimal("-200")) == Decimal("25")
        assert percentage_of(Decimal("-50"), Decimal("-200")) == Decimal("-25")

    def test_no_data_is_falsy(self):
        assert not NO_DATA
        assert repr(NO_DATA) == "NO_DATA"

    @given(amount=money, base=money)
    def test_never_raises(self, amount, base):
        result = percentage_of(amount, base)
        if base == 0:
            assert result is NO_DATA
        else:
            assert isinstance(result, Decimal)
            assert result.is_finite()


class TestFormatPercentage:
    """Tests for format_percentage."""

    @pytest.mark.parametrize(
        "value, places, expected",
        [
            (Decimal("12.345"), 1, "12.3%"),
            (Decimal("12.35"), 1, "12.4%"),
            (Decimal("-7.5"), 0, "-8%"),
            (Decimal("100"), 2, "100.00%"),
        ],
    )
    def test_formats(self, value, places, expected):
        assert format_percentage(value, places) == expected

    def test_no_data_renders_dash(self):
        assert format_percentage(NO_DATA) == "—"
