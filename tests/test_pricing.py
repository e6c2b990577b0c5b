"""
Tests for the pricing engine
"""

import pytest

from florista.pricing import (
    compute_financials,
    compute_unit_price,
    format_money,
    format_percent,
    format_quantity,
    parse_amount,
)


class TestUnitPrice:
    """Test compute_unit_price"""

    def test_dozen_at_twelve_is_one_each(self):
        assert compute_unit_price(12.00) == 1.00

    @pytest.mark.parametrize("price", [30.0, 7.5, 0.01, 1234.56])
    def test_is_exactly_price_over_twelve(self, price):
        assert compute_unit_price(price) == price / 12

    def test_accepts_form_strings(self):
        assert compute_unit_price(" 18.00 ") == 1.5

    @pytest.mark.parametrize("bad", [
        0, -12, "-3", "", "   ", None, "abc", "nan", "inf", float("nan"), [], {}, 10**400, "1e400",
    ])
    def test_non_positive_or_malformed_is_zero(self, bad):
        assert compute_unit_price(bad) == 0


class TestFinancials:
    """Test compute_financials"""

    def test_scenario_twelve_flowers_sold_for_fifty(self):
        fin = compute_financials(12, 1.00, 50.00)

        assert fin.total_flower_cost == pytest.approx(12.00)
        assert fin.profit == pytest.approx(38.00)
        assert fin.profit_margin == pytest.approx(76.0)

    def test_zero_sale_price_has_zero_margin(self):
        fin = compute_financials(12, 1.00, 0)

        assert fin.profit_margin == 0
        assert fin.profit == pytest.approx(-12.00)

    def test_negative_profit_is_reported(self):
        fin = compute_financials(24, 2.50, 40)

        assert fin.total_flower_cost == pytest.approx(60.0)
        assert fin.profit == pytest.approx(-20.0)
        assert fin.profit_margin == pytest.approx(-50.0)

    def test_margin_formula(self):
        fin = compute_financials(7, 1.25, 30)
        assert fin.profit_margin == pytest.approx(fin.profit / 30 * 100)

    def test_as_dict(self):
        assert set(compute_financials(1, 1, 2).as_dict()) == {"total_flower_cost", "profit", "profit_margin"}


class TestFormatting:
    """Test number parsing and display helpers"""

    @pytest.mark.parametrize("value,expected", [
        (0, "0.00"),
        (1, "1.00"),
        (1234.5, "1,234.50"),
        (1234567.891, "1,234,567.89"),
        (-38, "-38.00"),
        ("abc", "0.00"),
    ])
    def test_format_money(self, value, expected):
        assert format_money(value) == expected

    def test_format_percent(self):
        assert format_percent(76) == "76.0%"
        assert format_percent(-12.345) == "-12.3%"

    def test_format_quantity(self):
        assert format_quantity(12.0) == "12"
        assert format_quantity(2.5) == "2.5"

    def test_parse_amount_grouped(self):
        assert parse_amount("1,234.50") == 1234.5

    def test_parse_amount_bool_is_zero(self):
        assert parse_amount(True) == 0.0

    def test_parse_amount_huge_int_is_zero(self):
        assert parse_amount(10**400) == 0.0

    @pytest.mark.parametrize("raw", ["1,5", "12,50", "1,23,456", ",500", "1_2", "1__000"])
    def test_parse_amount_rejects_ambiguous_separators(self, raw):
        assert parse_amount(raw) == 0.0

    @pytest.mark.parametrize("raw,expected", [
        ("1,234", 1234.0),
        ("-12,000.5", -12000.5),
        ("1,234,567", 1234567.0),
    ])
    def test_parse_amount_thousands_groups(self, raw, expected):
        assert parse_amount(raw) == expected
