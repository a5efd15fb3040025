"""Tests for snowprice/common/text_utils.py"""

import pytest

from snowprice.common.text_utils import absolute_url, clean_text, contains_any


class TestCleanText:
    def test_collapses_whitespace(self):
        assert clean_text("  Burton\n\t Custom   158 ") == "Burton Custom 158"

    def test_strips_tags(self):
        assert clean_text("Burton <b>Custom</b>") == "Burton Custom"

    @pytest.mark.parametrize("text", ["", None])
    def test_empty_input(self, text):
        assert clean_text(text) == ""


class TestAbsoluteUrl:
    def test_protocol_relative(self):
        assert absolute_url("//cdn.shop.com/a.jpg", "http://shop.com/") == "https://cdn.shop.com/a.jpg"

    def test_root_relative(self):
        assert absolute_url("/products/custom", "https://shop.com/boards?page=2") == \
            "https://shop.com/products/custom"

    def test_path_relative(self):
        assert absolute_url("custom.html", "https://shop.com/boards/") == "https://shop.com/boards/custom.html"

    def test_already_absolute(self):
        assert absolute_url("https://other.com/x", "https://shop.com/") == "https://other.com/x"

    def test_empty_href(self):
        assert absolute_url("  ", "https://shop.com/") == ""


class TestContainsAny:
    def test_case_insensitive(self):
        assert contains_any("Burton WAX Kit", ["wax"]) is True

    def test_no_match(self):
        assert contains_any("Burton Custom", ["wax", "leash"]) is False

    def test_none_text(self):
        assert contains_any(None, ["wax"]) is False
