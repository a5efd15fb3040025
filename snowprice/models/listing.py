"""
Listing and catalog data models.

Pure data classes for raw store listings and the canonical products built
from them. No business logic - only data structure definitions.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..common.constants import UNCATEGORIZED, UNKNOWN_BRAND


@dataclass(frozen=True)
class CategoryHint:
    """Classification signals an adapter found next to a listing."""
    product_type: str = ""      # Platform-native type (e.g. Shopify product_type)
    breadcrumb: str = ""        # Breadcrumb text, " > " joined
    source_url: str = ""        # Listing / category page the item was found on
    store_category: str = ""    # Category id the store registry declares for that page


@dataclass(frozen=True)
class RawListing:
    """
    One observation of a product at one store by one extraction pass.

    Immutable: pipeline steps derive new instances with dataclasses.replace().

    Field Groups:
    - Identity: store, product_url (unique per store within one pass)
    - Product: brand (sentinel "unknown-brand" when no known brand matched), name
    - Pricing: native prices, currency, reference-currency price, discount
    - Classification: category_hint (adapter signals), categories (assigned ids)
    - Provenance: observed_at, metadata (e.g. extraction method)
    """

    store: str
    product_url: str
    store_name: str = ""
    currency: str = "USD"
    brand: str = UNKNOWN_BRAND
    name: str = ""
    sale_price: Optional[float] = None
    original_price: Optional[float] = None
    price_reference: Optional[int] = None   # Converted to JPY
    discount_percent: Optional[int] = None
    image_url: str = ""
    category_hint: CategoryHint = field(default_factory=CategoryHint)
    categories: List[str] = field(default_factory=list)
    observed_at: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """Validate required fields after initialization."""
        if not self.product_url:
            raise ValueError("Listing product URL is required")
        if not self.store:
            raise ValueError("Listing store is required")


@dataclass
class StoreOffer:
    """Per-store projection of a raw listing inside a canonical product."""
    store: str
    store_name: str
    currency: str
    product_url: str
    sale_price: Optional[float] = None
    original_price: Optional[float] = None
    price_reference: Optional[int] = None
    discount_percent: Optional[int] = None
    observed_at: str = ""
    categories: List[str] = field(default_factory=list)


@dataclass
class CanonicalProduct:
    """
    Resolved identity grouping listings of the same physical item across stores.

    `offers` is sorted ascending by reference price (missing prices last)
    and is never empty.
    """
    key: str
    brand: str
    name: str
    normalized_name: str
    offers: List[StoreOffer]
    image_url: str = ""
    lowest_price: Optional[int] = None
    highest_price: Optional[int] = None
    lowest_store: str = ""
    categories: List[str] = field(default_factory=lambda: [UNCATEGORIZED])

    def __post_init__(self):
        if not self.offers:
            raise ValueError(f"Canonical product {self.key!r} has no offers")

    @property
    def offer_count(self) -> int:
        return len(self.offers)
