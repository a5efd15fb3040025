"""
Catalog Merger

Builds canonical products from the full set of raw listings:

1. normalize prices (out-of-range listings are dropped and counted)
2. de-duplicate by (store, product_url), keeping the latest observation
3. group by canonical key
4. build one offer per member, cheapest first, missing prices last

The merge is a pure function of the listing set: members are ordered by
(store, product_url, observed_at) before anything is derived from them, so
input order never changes the result, and flatten_offers() followed by
merge() reproduces the same catalog.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from ..common.constants import UNCATEGORIZED
from ..errors import OutOfRangeValue
from ..matching.identity import group_by_key, normalized_name
from ..models import CanonicalProduct, RawListing, StoreOffer
from ..normalization.price import normalize_listing

logger = logging.getLogger(__name__)


@dataclass
class MergeStats:
    """Counters from the most recent merge."""
    input_listings: int = 0
    dropped_out_of_range: int = 0
    duplicates: int = 0
    products: int = 0
    collision_suspects: List[str] = field(default_factory=list)


def _member_order(listing: RawListing):
    return (listing.store, listing.product_url, listing.observed_at)


def _offer_order(offer: StoreOffer):
    missing = offer.price_reference is None
    return (missing, offer.price_reference or 0, offer.store, offer.product_url)


def dedupe_listings(listings: Iterable[RawListing]) -> List[RawListing]:
    """
    Drop repeated (store, product_url) observations.

    The latest observation wins; the result is ordered by
    (store, product_url).
    """
    latest: Dict[tuple, RawListing] = {}
    for listing in sorted(listings, key=_member_order):
        latest[(listing.store, listing.product_url)] = listing
    return list(latest.values())


def flatten_offers(products: Iterable[CanonicalProduct]) -> List[RawListing]:
    """
    Rebuild raw listings from canonical products.

    Each offer becomes one listing carrying the product's brand, name and
    image, so merging the result yields the same products again.
    """
    listings = []
    for product in products:
        for offer in product.offers:
            listings.append(RawListing(
                store=offer.store,
                product_url=offer.product_url,
                store_name=offer.store_name,
                currency=offer.currency,
                brand=product.brand,
                name=product.name,
                sale_price=offer.sale_price,
                original_price=offer.original_price,
                price_reference=offer.price_reference,
                discount_percent=offer.discount_percent,
                image_url=product.image_url,
                categories=list(offer.categories),
                observed_at=offer.observed_at,
            ))
    return listings


class CatalogMerger:
    """
    Merges raw listings into canonical products.

    Usage:
        merger = CatalogMerger(classifier=classifier)
        products = merger.merge(raw_listings)
        print(merger.stats.dropped_out_of_range)
    """

    def __init__(
        self,
        classifier=None,
        price_ranges: Optional[Dict[str, Dict[str, float]]] = None,
        rates: Optional[Dict[str, float]] = None,
    ):
        """
        Args:
            classifier: CategoryClassifier used for groups without categories
            price_ranges: Per-currency plausible windows in reference units
            rates: Exchange rates to the reference currency
        """
        self.classifier = classifier
        self.price_ranges = price_ranges
        self.rates = rates
        self.stats = MergeStats()

    def merge(self, raw_listings: Iterable[RawListing]) -> List[CanonicalProduct]:
        """
        Merge raw listings into canonical products sorted by key.

        Never raises for bad listings: out-of-range prices are dropped and
        counted in self.stats.
        """
        raw_listings = list(raw_listings)
        self.stats = MergeStats(input_listings=len(raw_listings))

        normalized = []
        for listing in raw_listings:
            try:
                normalized.append(normalize_listing(listing, self.price_ranges, self.rates))
            except OutOfRangeValue as exc:
                self.stats.dropped_out_of_range += 1
                logger.debug("Dropped listing: %s", exc)

        unique = dedupe_listings(normalized)
        self.stats.duplicates = len(normalized) - len(unique)

        products = []
        for key, members in group_by_key(unique).items():
            members.sort(key=_member_order)
            products.append(self._build_product(key, members))

        products.sort(key=lambda p: p.key)
        self.stats.products = len(products)

        if self.stats.dropped_out_of_range:
            logger.info("Dropped %d out-of-range listings", self.stats.dropped_out_of_range)
        if self.stats.collision_suspects:
            logger.warning(
                "%d products group several URLs from one store: %s",
                len(self.stats.collision_suspects),
                ", ".join(self.stats.collision_suspects[:10]),
            )
        return products

    def _build_product(self, key: str, members: List[RawListing]) -> CanonicalProduct:
        first = members[0]

        categories: List[str] = []
        for member in members:
            for category in member.categories:
                if category not in categories:
                    categories.append(category)

        image_url = next((m.image_url for m in members if m.image_url), "")

        offers = sorted((self._to_offer(m) for m in members), key=_offer_order)

        if not categories:
            source = next(m for m in members if (m.store, m.product_url) == (offers[0].store, offers[0].product_url))
            category = self.classifier.classify(source) if self.classifier else UNCATEGORIZED
            categories = [category]
            for offer in offers:
                offer.categories = [category]

        prices = [o.price_reference for o in offers if o.price_reference is not None]

        self._check_collision(key, members)

        return CanonicalProduct(
            key=key,
            brand=first.brand,
            name=first.name,
            normalized_name=normalized_name(first.brand, first.name),
            offers=offers,
            image_url=image_url,
            lowest_price=min(prices) if prices else None,
            highest_price=max(prices) if prices else None,
            lowest_store=offers[0].store_name or offers[0].store,
            categories=categories,
        )

    @staticmethod
    def _to_offer(listing: RawListing) -> StoreOffer:
        return StoreOffer(
            store=listing.store,
            store_name=listing.store_name,
            currency=listing.currency,
            product_url=listing.product_url,
            sale_price=listing.sale_price,
            original_price=listing.original_price,
            price_reference=listing.price_reference,
            discount_percent=listing.discount_percent,
            observed_at=listing.observed_at,
            categories=list(listing.categories),
        )

    def _check_collision(self, key: str, members: List[RawListing]) -> None:
        """Flag groups holding two different URLs from the same store."""
        urls_by_store = defaultdict(set)
        for member in members:
            urls_by_store[member.store].add(member.product_url)
        if any(len(urls) > 1 for urls in urls_by_store.values()):
            self.stats.collision_suspects.append(key)
