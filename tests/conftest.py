"""Shared test fixtures."""

import itertools

import pytest

from snowprice.matching.brand_matcher import BrandMatcher
from snowprice.models import CategoryHint, RawListing, StoreConfig


@pytest.fixture
def sample_known_brands():
    """Ordered brand list; multi-word brands come before shorter ones."""
    return ["Lib Tech", "Burton", "Salomon", "GNU", "Capita", "Ride", "Jones"]


@pytest.fixture
def brand_matcher(sample_known_brands):
    return BrandMatcher(brands=sample_known_brands)


@pytest.fixture
def sample_categories():
    """Category definitions in precedence order, as load_category_config() returns them."""
    return [
        {
            'id': 'binding',
            'keywords': ['binding', 'bindings'],
            'exclude_keywords': ['binding screw'],
            'breadcrumb_keywords': ['binding', 'bindings'],
            'url_patterns': ['/binding'],
        },
        {
            'id': 'boots',
            'keywords': ['boot', 'boots'],
            'exclude_keywords': ['boot bag'],
            'breadcrumb_keywords': ['boot', 'boots'],
            'url_patterns': ['/boots'],
        },
        {
            'id': 'snowboard',
            'keywords': ['snowboard', 'board'],
            'exclude_keywords': ['board bag'],
            'breadcrumb_keywords': ['snowboard', 'snowboards'],
            'url_patterns': ['/snowboard'],
        },
    ]


@pytest.fixture
def sample_type_mapping():
    return {'snowboards': 'snowboard', 'snowboard bindings': 'binding'}


@pytest.fixture
def jp_store():
    return StoreConfig(
        id="alpha",
        name="Alpha Snow",
        base_url="https://alpha.example.jp/list",
        currency="JPY",
        country="JP",
        type="builtin",
    )


@pytest.fixture
def make_listing():
    """
    Factory for raw listings with sensible defaults.

    Every call gets a fresh product URL unless one is given.
    """
    counter = itertools.count(1)

    def _make(**overrides):
        n = next(counter)
        store = overrides.get("store", "alpha")
        fields = dict(
            store=store,
            product_url=f"https://{store}.example.com/products/item-{n}",
            store_name=store.capitalize(),
            currency="JPY",
            brand="Burton",
            name="Custom",
            sale_price=60000.0,
            image_url=f"https://cdn.example.com/{store}/item-{n}.jpg",
            category_hint=CategoryHint(),
            observed_at="2024-11-01T00:00:00+00:00",
        )
        fields.update(overrides)
        return RawListing(**fields)

    return _make
