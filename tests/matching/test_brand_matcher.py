"""Tests for snowprice/matching/brand_matcher.py"""

import pytest

from snowprice.common.constants import UNKNOWN_BRAND
from snowprice.matching.brand_matcher import BrandMatcher


@pytest.fixture
def matcher(sample_known_brands):
    """Create a BrandMatcher with test brands (no config I/O)."""
    return BrandMatcher(brands=sample_known_brands)


class TestMatch:
    def test_structured_brand_priority(self, matcher):
        assert matcher.match("Burton Custom", structured_brand="Salomon") == "Salomon"

    def test_structured_brand_gets_canonical_case(self, matcher):
        assert matcher.match("Custom", structured_brand="BURTON") == "Burton"

    def test_unknown_structured_brand_kept(self, matcher):
        assert matcher.match("Pow Stick", structured_brand="Moss") == "Moss"

    def test_blank_structured_brand_falls_back_to_title(self, matcher):
        assert matcher.match("Burton Custom", structured_brand="  ") == "Burton"


class TestMatchFromTitle:
    def test_single_word_brand(self, matcher):
        assert matcher.match_from_title("Burton Custom Camber 158") == "Burton"

    def test_multi_word_brand(self, matcher):
        assert matcher.match_from_title("2024 LIB TECH T.Rice Pro 157") == "Lib Tech"

    def test_first_brand_in_list_order_wins(self, matcher):
        # Both contained; "Lib Tech" is listed before "GNU"
        assert matcher.match_from_title("GNU x Lib Tech collab") == "Lib Tech"

    def test_substring_match_is_a_known_limitation(self, matcher):
        assert matcher.match_from_title("Override Jacket") == "Ride"

    def test_no_match(self, matcher):
        assert matcher.match_from_title("Mystery Deck 155") == ""

    def test_empty_title(self, matcher):
        assert matcher.match_from_title("") == ""


class TestSplitTitle:
    def test_removes_brand_from_name(self, matcher):
        assert matcher.split_title("BURTON Custom Camber 158") == ("Burton", "Custom Camber 158")

    def test_brand_in_middle(self, matcher):
        assert matcher.split_title("2024 Burton Custom") == ("Burton", "2024 Custom")

    def test_unknown_brand_keeps_title(self, matcher):
        assert matcher.split_title("Mystery  Deck 155") == (UNKNOWN_BRAND, "Mystery Deck 155")

    def test_title_that_is_only_the_brand(self, matcher):
        assert matcher.split_title("Burton") == ("Burton", "Burton")

    def test_structured_brand_not_in_title(self, matcher):
        assert matcher.split_title("Custom Camber", structured_brand="burton") == ("Burton", "Custom Camber")


class TestIsKnownBrand:
    def test_known_brand(self, matcher):
        assert matcher.is_known_brand("Burton") is True

    def test_case_insensitive(self, matcher):
        assert matcher.is_known_brand("lib tech") is True

    def test_unknown_brand(self, matcher):
        assert matcher.is_known_brand("FakeBrand") is False

    def test_empty(self, matcher):
        assert matcher.is_known_brand("") is False


class TestGetCanonicalName:
    def test_returns_canonical(self, matcher):
        assert matcher.get_canonical_name("CAPITA") == "Capita"

    def test_unknown_returns_original(self, matcher):
        assert matcher.get_canonical_name("Moss") == "Moss"


class TestBrandCount:
    def test_count(self, matcher, sample_known_brands):
        assert matcher.brand_count == len(sample_known_brands)
