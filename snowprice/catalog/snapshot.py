"""
Catalog Snapshot

The published catalog as one JSON document:

    {
      "schemaVersion": 2,
      "lastUpdated": "...",
      "totalRawProducts": 123,
      "totalProducts": 45,
      "stores": [{"id": ..., "name": ..., "currency": ..., ...}],
      "exchangeRates": {"JPY": 1, ...},
      "products": [...],
      "rawProducts": [...]
    }

Documents are always read and written whole; saves replace the file
atomically. Loading fills every missing field with its default and migrates
the legacy layout (schema 1: offers under "stores", "storeCount",
"priceJPY", "scrapedAt", "discount").
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..common.constants import EXCHANGE_RATES, UNCATEGORIZED, UNKNOWN_BRAND
from ..common.json_utils import read_json, write_json_atomic
from ..models import CanonicalProduct, CategoryHint, RawListing, StoreConfig, StoreOffer

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 2

# Brand sentinel written by schema-1 documents
LEGACY_UNKNOWN_BRANDS = frozenset({"未知品牌"})


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _first(data: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    """Value of the first key present (current name first, legacy names after)."""
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


def _categories(value: Any) -> List[str]:
    if isinstance(value, str):
        value = [value]
    return [str(c) for c in (value or []) if c]


def _brand(value: Any) -> str:
    if not value or value in LEGACY_UNKNOWN_BRANDS:
        return UNKNOWN_BRAND
    return str(value)


# ── Raw listings ─────────────────────────────────────────────────────────────

def listing_to_dict(listing: RawListing) -> Dict[str, Any]:
    hint = listing.category_hint
    return {
        'store': listing.store,
        'storeName': listing.store_name,
        'currency': listing.currency,
        'brand': listing.brand,
        'name': listing.name,
        'salePrice': listing.sale_price,
        'originalPrice': listing.original_price,
        'priceReference': listing.price_reference,
        'discountPercent': listing.discount_percent,
        'imageUrl': listing.image_url,
        'productUrl': listing.product_url,
        'categoryHint': {
            'productType': hint.product_type,
            'breadcrumb': hint.breadcrumb,
            'sourceUrl': hint.source_url,
            'storeCategory': hint.store_category,
        },
        'categories': list(listing.categories),
        'observedAt': listing.observed_at,
        'metadata': dict(listing.metadata),
    }


def listing_from_dict(data: Dict[str, Any]) -> RawListing:
    """
    Build a RawListing from current or legacy keys.

    Raises:
        ValueError: If the listing has no store or product URL
    """
    hint = data.get('categoryHint') or {}
    return RawListing(
        store=data.get('store', ''),
        product_url=data.get('productUrl', ''),
        store_name=data.get('storeName', ''),
        currency=data.get('currency', 'USD'),
        brand=_brand(data.get('brand')),
        name=data.get('name', ''),
        sale_price=data.get('salePrice'),
        original_price=data.get('originalPrice'),
        price_reference=_first(data, 'priceReference', 'priceJPY'),
        discount_percent=_first(data, 'discountPercent', 'discount'),
        image_url=data.get('imageUrl') or '',
        category_hint=CategoryHint(
            product_type=hint.get('productType', ''),
            breadcrumb=hint.get('breadcrumb', ''),
            source_url=hint.get('sourceUrl', ''),
            store_category=hint.get('storeCategory', ''),
        ),
        categories=_categories(data.get('categories')),
        observed_at=_first(data, 'observedAt', 'scrapedAt', default=''),
        metadata=dict(data.get('metadata') or {}),
    )


# ── Canonical products ───────────────────────────────────────────────────────

def offer_to_dict(offer: StoreOffer) -> Dict[str, Any]:
    return {
        'store': offer.store,
        'storeName': offer.store_name,
        'currency': offer.currency,
        'productUrl': offer.product_url,
        'salePrice': offer.sale_price,
        'originalPrice': offer.original_price,
        'priceReference': offer.price_reference,
        'discountPercent': offer.discount_percent,
        'observedAt': offer.observed_at,
        'categories': list(offer.categories),
    }


def offer_from_dict(data: Dict[str, Any]) -> StoreOffer:
    return StoreOffer(
        store=data.get('store', ''),
        store_name=data.get('storeName', ''),
        currency=data.get('currency', 'USD'),
        product_url=data.get('productUrl', ''),
        sale_price=data.get('salePrice'),
        original_price=data.get('originalPrice'),
        price_reference=_first(data, 'priceReference', 'priceJPY'),
        discount_percent=_first(data, 'discountPercent', 'discount'),
        observed_at=_first(data, 'observedAt', 'scrapedAt', default=''),
        categories=_categories(data.get('categories')),
    )


def product_to_dict(product: CanonicalProduct) -> Dict[str, Any]:
    return {
        'key': product.key,
        'brand': product.brand,
        'name': product.name,
        'normalizedName': product.normalized_name,
        'imageUrl': product.image_url,
        'offers': [offer_to_dict(o) for o in product.offers],
        'lowestPrice': product.lowest_price,
        'highestPrice': product.highest_price,
        'lowestStore': product.lowest_store,
        'offerCount': product.offer_count,
        'categories': list(product.categories),
    }


def product_from_dict(data: Dict[str, Any]) -> CanonicalProduct:
    """
    Build a CanonicalProduct from current or legacy keys.

    Raises:
        ValueError: If the product has no offers
    """
    offers = [offer_from_dict(o) for o in (_first(data, 'offers', 'stores', default=[]) or [])]
    return CanonicalProduct(
        key=data.get('key', ''),
        brand=_brand(data.get('brand')),
        name=data.get('name', ''),
        normalized_name=data.get('normalizedName', ''),
        offers=offers,
        image_url=data.get('imageUrl') or '',
        lowest_price=data.get('lowestPrice'),
        highest_price=data.get('highestPrice'),
        lowest_store=data.get('lowestStore', ''),
        categories=_categories(data.get('categories')) or [UNCATEGORIZED],
    )


def store_summary(store: StoreConfig) -> Dict[str, Any]:
    """Store entry as listed in the snapshot."""
    return {
        'id': store.id,
        'name': store.name,
        'currency': store.currency,
        'country': store.country,
        'type': store.type,
        'baseUrl': store.base_url,
        'method': store.method,
    }


# ── Document ─────────────────────────────────────────────────────────────────

@dataclass
class CatalogSnapshot:
    """The published catalog: canonical products plus every raw listing."""

    products: List[CanonicalProduct] = field(default_factory=list)
    raw_products: List[RawListing] = field(default_factory=list)
    stores: List[Dict[str, Any]] = field(default_factory=list)
    exchange_rates: Dict[str, float] = field(default_factory=lambda: dict(EXCHANGE_RATES))
    last_updated: Optional[str] = None
    schema_version: int = SCHEMA_VERSION

    @property
    def total_products(self) -> int:
        return len(self.products)

    @property
    def total_raw_products(self) -> int:
        return len(self.raw_products)

    def find_product(self, key: str) -> Optional[CanonicalProduct]:
        return next((p for p in self.products if p.key == key), None)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'schemaVersion': self.schema_version,
            'lastUpdated': self.last_updated,
            'totalRawProducts': self.total_raw_products,
            'totalProducts': self.total_products,
            'stores': list(self.stores),
            'exchangeRates': dict(self.exchange_rates),
            'products': [product_to_dict(p) for p in self.products],
            'rawProducts': [listing_to_dict(r) for r in self.raw_products],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CatalogSnapshot":
        """
        Build a snapshot from a (possibly legacy or partial) document.

        Entries that cannot be represented (a listing without a product
        URL, a product without offers) are skipped with a warning.
        """
        version = data.get('schemaVersion', 1)
        if version < SCHEMA_VERSION:
            logger.info("Migrating catalog snapshot from schema %s to %s", version, SCHEMA_VERSION)

        raw_products = []
        for entry in data.get('rawProducts') or []:
            try:
                raw_products.append(listing_from_dict(entry))
            except ValueError as exc:
                logger.warning("Skipping raw listing %r: %s", entry.get('name', ''), exc)

        products = []
        for entry in data.get('products') or []:
            try:
                products.append(product_from_dict(entry))
            except ValueError as exc:
                logger.warning("Skipping product %r: %s", entry.get('key', ''), exc)

        return cls(
            products=products,
            raw_products=raw_products,
            stores=list(data.get('stores') or []),
            exchange_rates=dict(data.get('exchangeRates') or EXCHANGE_RATES),
            last_updated=data.get('lastUpdated'),
        )

    @classmethod
    def load(cls, path: str | Path) -> "CatalogSnapshot":
        """Load a snapshot; a missing or unreadable file gives an empty one."""
        data = read_json(path)
        if not isinstance(data, dict):
            return cls()
        return cls.from_dict(data)

    def save(self, path: str | Path) -> None:
        """Write the whole document, replacing the file atomically."""
        write_json_atomic(path, self.to_dict())
        logger.info(
            "Saved catalog: %d raw listings, %d products -> %s",
            self.total_raw_products, self.total_products, path,
        )
