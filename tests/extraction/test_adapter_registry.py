"""Tests for snowprice/extraction/registry.py"""

import pytest

from snowprice.extraction import (
    BrowserListingAdapter,
    HttpListingAdapter,
    ShopifyJsonAdapter,
    get_adapter,
    requires_rendering,
)


class TestGetAdapter:
    def test_http(self):
        adapter = get_adapter("http", timeout=5, page_delay=0)
        assert isinstance(adapter, HttpListingAdapter)
        assert adapter.timeout == 5

    def test_shopify_json(self):
        assert isinstance(get_adapter("shopify_json"), ShopifyJsonAdapter)

    def test_browser_variants(self):
        standard = get_adapter("browser")
        accurate = get_adapter("browser_high_accuracy")
        assert isinstance(standard, BrowserListingAdapter)
        assert standard.high_accuracy is False
        assert accurate.high_accuracy is True
        assert accurate.method == "browser_high_accuracy"

    def test_unknown_method(self):
        with pytest.raises(ValueError, match="Unknown extraction method"):
            get_adapter("ftp")


class TestRequiresRendering:
    @pytest.mark.parametrize("method, expected", [
        ("http", False),
        ("shopify_json", False),
        ("browser", True),
        ("browser_high_accuracy", True),
    ])
    def test_methods(self, method, expected):
        assert requires_rendering(method) is expected
