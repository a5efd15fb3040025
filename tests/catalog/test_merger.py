"""Tests for snowprice/catalog/merger.py"""

import random
from unittest.mock import MagicMock

import pytest

from snowprice.catalog.merger import CatalogMerger, dedupe_listings, flatten_offers
from snowprice.common.constants import UNCATEGORIZED


@pytest.fixture
def listings(make_listing):
    """Three stores carrying the same board plus one other product."""
    return [
        make_listing(store="alpha", name="Custom 158", categories=["snowboard"], image_url=""),
        make_listing(store="beta", name="Custom", currency="USD", sale_price=380.0,
                     categories=["snowboard"]),
        make_listing(store="gamma", name="Custom 2024", sale_price=None, categories=["snowboard"]),
        make_listing(store="beta", name="Cartel", currency="USD", sale_price=300.0,
                     original_price=350.0, categories=["binding"]),
    ]


class TestMerge:
    def test_groups_listings_by_key(self, listings):
        products = CatalogMerger().merge(listings)
        assert [p.key for p in products] == ["burton-cartel", "burton-custom"]
        custom = products[1]
        assert custom.offer_count == 3
        assert custom.normalized_name == "BURTON CUSTOM"

    def test_offers_sorted_cheapest_first_missing_last(self, listings):
        custom = CatalogMerger().merge(listings)[1]
        assert [o.store for o in custom.offers] == ["beta", "alpha", "gamma"]
        assert [o.price_reference for o in custom.offers] == [57000, 60000, None]

    def test_price_summary(self, listings):
        custom = CatalogMerger().merge(listings)[1]
        assert custom.lowest_price == 57000
        assert custom.highest_price == 60000
        assert custom.lowest_store == "Beta"

    def test_first_member_supplies_name_and_first_image(self, listings):
        custom = CatalogMerger().merge(listings)[1]
        assert custom.name == "Custom 158"
        assert custom.image_url == listings[1].image_url

    def test_discount_recomputed(self, listings):
        cartel = CatalogMerger().merge(listings)[0]
        assert cartel.offers[0].discount_percent == 14
        assert cartel.offers[0].price_reference == 45000

    def test_categories_are_unioned(self, make_listing):
        products = CatalogMerger().merge([
            make_listing(store="alpha", categories=["snowboard"]),
            make_listing(store="beta", categories=["binding", "snowboard"]),
        ])
        assert products[0].categories == ["snowboard", "binding"]

    def test_input_order_does_not_matter(self, listings):
        expected = CatalogMerger().merge(listings)
        shuffled = list(listings)
        random.Random(7).shuffle(shuffled)
        assert CatalogMerger().merge(shuffled) == expected
        assert CatalogMerger().merge(reversed(listings)) == expected

    def test_flatten_and_merge_reproduces_catalog(self, listings):
        products = CatalogMerger().merge(listings)
        assert CatalogMerger().merge(flatten_offers(products)) == products

    def test_flatten_round_trip_with_fallback_classification(self, make_listing):
        classifier = MagicMock()
        classifier.classify.return_value = "snowboard"
        products = CatalogMerger(classifier=classifier).merge([
            make_listing(store="alpha"),
            make_listing(store="beta", sale_price=59000.0),
        ])
        assert CatalogMerger().merge(flatten_offers(products)) == products

    def test_empty_input(self):
        merger = CatalogMerger()
        assert merger.merge([]) == []
        assert merger.stats.products == 0


class TestMergeDropsAndDuplicates:
    def test_out_of_range_dropped_and_counted(self, make_listing):
        merger = CatalogMerger()
        products = merger.merge([
            make_listing(store="alpha"),
            make_listing(store="beta", sale_price=500.0),
        ])
        assert merger.stats.dropped_out_of_range == 1
        assert merger.stats.input_listings == 2
        assert [o.store for o in products[0].offers] == ["alpha"]

    def test_only_out_of_range_listings(self, make_listing):
        merger = CatalogMerger()
        assert merger.merge([make_listing(sale_price=1.0)]) == []

    def test_custom_price_range(self, make_listing):
        merger = CatalogMerger(price_ranges={"JPY": {"min": 1, "max": 1000}})
        products = merger.merge([make_listing(sale_price=500.0)])
        assert products[0].lowest_price == 500

    def test_duplicate_observation_keeps_latest(self, make_listing):
        url = "https://alpha.example.com/products/custom"
        older = make_listing(product_url=url, sale_price=60000.0,
                             observed_at="2024-11-01T00:00:00+00:00")
        newer = make_listing(product_url=url, sale_price=55000.0,
                             observed_at="2024-11-02T00:00:00+00:00")
        merger = CatalogMerger()
        products = merger.merge([newer, older])
        assert merger.stats.duplicates == 1
        assert products[0].offer_count == 1
        assert products[0].lowest_price == 55000

    def test_collision_suspect_reported_not_split(self, make_listing):
        merger = CatalogMerger()
        products = merger.merge([
            make_listing(store="alpha", name="Custom 154"),
            make_listing(store="alpha", name="Custom 158"),
        ])
        assert merger.stats.collision_suspects == ["burton-custom"]
        assert products[0].offer_count == 2


class TestFallbackClassification:
    def test_uncategorized_group_uses_classifier(self, make_listing):
        classifier = MagicMock()
        classifier.classify.return_value = "snowboard"
        products = CatalogMerger(classifier=classifier).merge([
            make_listing(store="alpha", sale_price=61000.0),
            make_listing(store="beta", sale_price=59000.0),
        ])
        product = products[0]
        assert product.categories == ["snowboard"]
        assert all(o.categories == ["snowboard"] for o in product.offers)

        classifier.classify.assert_called_once()
        classified = classifier.classify.call_args[0][0]
        assert classified.product_url == product.offers[0].product_url

    def test_without_classifier(self, make_listing):
        products = CatalogMerger().merge([make_listing()])
        assert products[0].categories == [UNCATEGORIZED]


class TestDedupeListings:
    def test_orders_by_store_and_url(self, make_listing):
        b = make_listing(store="beta")
        a = make_listing(store="alpha")
        assert dedupe_listings([b, a]) == [a, b]
