"""Tests for snowprice/normalization/price.py"""

import pytest

from snowprice.errors import OutOfRangeValue
from snowprice.normalization.price import (
    convert_to_reference,
    detect_currency,
    discount_percent,
    is_reasonable_price,
    normalize_listing,
    parse_price,
)


class TestParsePrice:
    def test_yen_symbol_overrides_default(self):
        assert parse_price("¥12,345", "USD") == (12345.0, "JPY")

    def test_fullwidth_yen(self):
        assert parse_price("￥89,800(税込)") == (89800.0, "JPY")

    def test_european_decimal_comma(self):
        assert parse_price("1.234,56", "EUR") == (1234.56, "EUR")

    def test_english_grouping(self):
        assert parse_price("1,234.56") == (1234.56, "USD")

    def test_two_digit_comma_tail_is_decimal(self):
        assert parse_price("12,50 €") == (12.5, "EUR")

    def test_three_digit_comma_tail_is_grouping(self):
        assert parse_price("12,500", "JPY") == (12500.0, "JPY")

    def test_repeated_dots_are_grouping(self):
        assert parse_price("1.234.567", "JPY") == (1234567.0, "JPY")

    def test_dollar(self):
        assert parse_price("$1,299.99") == (1299.99, "USD")

    def test_canadian_dollar_not_read_as_usd(self):
        assert parse_price("C$899.99") == (899.99, "CAD")

    def test_taiwan_dollar(self):
        assert parse_price("NT$12,000") == (12000.0, "TWD")

    def test_currency_code_text(self):
        assert parse_price("TWD 1,000") == (1000.0, "TWD")

    def test_no_symbol_uses_default(self):
        assert parse_price("45,000", "JPY") == (45000.0, "JPY")

    @pytest.mark.parametrize("text", ["", None])
    def test_empty_text(self, text):
        assert parse_price(text, "CAD") == (None, "CAD")

    def test_text_without_digits(self):
        assert parse_price("Sold out", "JPY") == (None, "JPY")

    def test_symbol_without_digits_keeps_currency(self):
        assert parse_price("¥ -", "USD") == (None, "JPY")


class TestDetectCurrency:
    def test_longest_symbol_wins(self):
        assert detect_currency("AU$450") == "AUD"
        assert detect_currency("CA$450") == "CAD"

    def test_pound_and_euro(self):
        assert detect_currency("£300") == "GBP"
        assert detect_currency("300 €") == "EUR"


class TestConvertToReference:
    def test_usd(self):
        assert convert_to_reference(100, "USD") == 15000

    def test_jpy_identity(self):
        assert convert_to_reference(60000, "JPY") == 60000

    def test_fractional_rate(self):
        assert convert_to_reference(1000, "TWD") == 4800

    def test_missing_amount(self):
        assert convert_to_reference(None, "USD") is None

    def test_unknown_currency(self):
        assert convert_to_reference(100, "XYZ") is None

    def test_custom_rates(self):
        assert convert_to_reference(10, "USD", rates={"USD": 2}) == 20


class TestIsReasonablePrice:
    def test_inside_default_window(self):
        assert is_reasonable_price(50000, "JPY") is True

    def test_below_window(self):
        assert is_reasonable_price(5, "JPY") is False

    def test_above_window(self):
        assert is_reasonable_price(1_000_000, "JPY") is False

    def test_window_applies_after_conversion(self):
        # $100 -> 15,000 JPY
        assert is_reasonable_price(100, "USD") is True
        assert is_reasonable_price(50, "USD") is False

    def test_missing_price_is_not_rejected(self):
        assert is_reasonable_price(None, "USD") is True

    def test_unknown_currency_is_not_rejected(self):
        assert is_reasonable_price(5, "XYZ") is True

    def test_per_currency_override(self):
        ranges = {"JPY": {"min": 1, "max": 10}}
        assert is_reasonable_price(5, "JPY", ranges) is True
        assert is_reasonable_price(50000, "JPY", ranges) is False


class TestDiscountPercent:
    def test_discount(self):
        assert discount_percent(80, 100) == 20

    def test_no_discount_when_original_not_higher(self):
        assert discount_percent(100, 80) is None
        assert discount_percent(100, 100) is None

    def test_missing_values(self):
        assert discount_percent(None, 100) is None
        assert discount_percent(80, None) is None


class TestNormalizeListing:
    def test_sets_reference_and_discount(self, make_listing):
        listing = make_listing(currency="USD", sale_price=400.0, original_price=500.0)
        result = normalize_listing(listing)
        assert result.price_reference == 60000
        assert result.discount_percent == 20
        assert listing.price_reference is None

    def test_falls_back_to_original_price(self, make_listing):
        listing = make_listing(sale_price=None, original_price=70000.0)
        assert normalize_listing(listing).price_reference == 70000

    def test_missing_prices_pass_through(self, make_listing):
        listing = make_listing(sale_price=None)
        result = normalize_listing(listing)
        assert result.price_reference is None
        assert result.discount_percent is None

    def test_out_of_range_raises(self, make_listing):
        listing = make_listing(sale_price=500.0)
        with pytest.raises(OutOfRangeValue) as exc_info:
            normalize_listing(listing)
        assert exc_info.value.product_url == listing.product_url
        assert exc_info.value.price_reference == 500
