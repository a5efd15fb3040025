"""Tests for snowprice/models/"""

import dataclasses

import pytest

from snowprice.models import (
    CanonicalProduct,
    CategoryHint,
    ConsensusResult,
    ConsensusState,
    ConsensusStatus,
    PassSummary,
    RawListing,
    StoreCategory,
    StoreConfig,
    StoreOffer,
)


class TestRawListing:
    def test_create_with_defaults(self):
        listing = RawListing(store="alpha", product_url="https://alpha.jp/p/1")
        assert listing.brand == "unknown-brand"
        assert listing.currency == "USD"
        assert listing.categories == []
        assert listing.category_hint == CategoryHint()

    def test_raises_on_empty_url(self):
        with pytest.raises(ValueError, match="URL is required"):
            RawListing(store="alpha", product_url="")

    def test_raises_on_empty_store(self):
        with pytest.raises(ValueError, match="store is required"):
            RawListing(store="", product_url="https://alpha.jp/p/1")

    def test_is_immutable(self):
        listing = RawListing(store="alpha", product_url="https://alpha.jp/p/1")
        with pytest.raises(dataclasses.FrozenInstanceError):
            listing.name = "Custom"
        changed = dataclasses.replace(listing, name="Custom")
        assert changed.name == "Custom"
        assert listing.name == ""


class TestCanonicalProduct:
    def test_requires_offers(self):
        with pytest.raises(ValueError, match="no offers"):
            CanonicalProduct(key="burton-custom", brand="Burton", name="Custom",
                             normalized_name="burton custom", offers=[])

    def test_offer_count_and_default_category(self):
        offer = StoreOffer(store="alpha", store_name="Alpha", currency="JPY",
                           product_url="https://alpha.jp/p/1")
        product = CanonicalProduct(key="burton-custom", brand="Burton", name="Custom",
                                   normalized_name="burton custom", offers=[offer])
        assert product.offer_count == 1
        assert product.categories == ["uncategorized"]


class TestStoreConfig:
    def test_listing_pages_defaults_to_base_url(self):
        store = StoreConfig(id="alpha", name="Alpha", base_url="https://alpha.jp/boards")
        assert store.listing_pages() == [StoreCategory(url="https://alpha.jp/boards", category="")]
        assert store.is_builtin is False

    def test_listing_pages_uses_categories(self):
        pages = [StoreCategory(url="https://alpha.jp/bindings", category="binding")]
        store = StoreConfig(id="alpha", name="Alpha", base_url="https://alpha.jp",
                            type="builtin", categories=pages)
        assert store.listing_pages() == pages
        assert store.listing_pages() is not store.categories
        assert store.is_builtin is True


class TestConsensusResult:
    def _result(self, status):
        return ConsensusResult(store_id="alpha", primary=PassSummary("http"),
                               secondary=PassSummary("browser"), status=status)

    @pytest.mark.parametrize("status,passed", [
        (ConsensusStatus.AUTO_MERGED, True),
        (ConsensusStatus.MERGED_WITH_WARNING, True),
        (ConsensusStatus.SKIPPED_SINGLE_SOURCE, True),
        (ConsensusStatus.REQUIRES_CONFIRMATION, False),
        (ConsensusStatus.ERROR, False),
    ])
    def test_passed(self, status, passed):
        assert self._result(status).passed is passed

    def test_requires_confirmation(self):
        assert self._result(ConsensusStatus.REQUIRES_CONFIRMATION).requires_confirmation
        assert not self._result(ConsensusStatus.AUTO_MERGED).requires_confirmation

    def test_state_history(self):
        result = self._result(ConsensusStatus.ERROR)
        assert result.state == ConsensusState.INIT
        result.advance(ConsensusState.PRIMARY_FETCHED)
        assert result.state == ConsensusState.PRIMARY_FETCHED
        assert result.state_history == [ConsensusState.INIT, ConsensusState.PRIMARY_FETCHED]
