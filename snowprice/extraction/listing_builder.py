"""
Listing Builder

Turns a parsed product card (whatever the adapter found: title, price
text or numbers, image, URL, hints) into a RawListing: brand split, price
parse with currency detection, reference price and discount.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from ..common.constants import UNKNOWN_BRAND
from ..common.text_utils import clean_text, contains_any
from ..matching.brand_matcher import BrandMatcher, get_brand_matcher
from ..models import CategoryHint, RawListing, StoreConfig
from ..normalization.price import convert_to_reference, discount_percent, parse_price

logger = logging.getLogger(__name__)

# Titles containing these are small parts and add-ons, never boards
ACCESSORY_KEYWORDS = ('puck', 'screw', 'stomp', 'leash', 'lock', 'wax', 'tool', 'bag only', 'strap')


@dataclass
class ParsedCard:
    """Raw fields of one product card before normalization."""
    title: str
    product_url: str
    price_text: str = ""
    original_price_text: str = ""
    sale_price: Optional[float] = None          # Set when the source gives numbers (JSON APIs)
    original_price: Optional[float] = None
    image_url: str = ""
    structured_brand: str = ""
    category_hint: CategoryHint = field(default_factory=CategoryHint)


def is_accessory(title: str) -> bool:
    return contains_any(title, ACCESSORY_KEYWORDS)


class ListingBuilder:
    """
    Builds RawListings for one store and extraction method.

    Usage:
        builder = ListingBuilder(store, "http")
        listing = builder.build(card)   # None when the card is skipped
    """

    def __init__(
        self,
        store: StoreConfig,
        method: str,
        brand_matcher: Optional[BrandMatcher] = None,
        skip_accessories: bool = True,
    ):
        self.store = store
        self.method = method
        self.brand_matcher = brand_matcher or get_brand_matcher()
        self.skip_accessories = skip_accessories

    def build(self, card: ParsedCard) -> Optional[RawListing]:
        """
        Build a listing from a card.

        Returns:
            RawListing, or None for cards without title/URL and accessories
        """
        title = clean_text(card.title)
        if not title or not card.product_url:
            return None
        if self.skip_accessories and is_accessory(title):
            logger.debug("Skipping accessory: %s", title)
            return None

        brand, name = self.brand_matcher.split_title(title, card.structured_brand)

        currency = self.store.currency
        sale_price = card.sale_price
        if sale_price is None and card.price_text:
            parsed = parse_price(card.price_text, self.store.currency)
            sale_price, currency = parsed.amount, parsed.currency

        original_price = card.original_price
        if original_price is None and card.original_price_text:
            original_price = parse_price(card.original_price_text, currency).amount

        # A zero price is a missing price
        sale_price = sale_price or None
        original_price = original_price or None

        price = sale_price if sale_price is not None else original_price

        return RawListing(
            store=self.store.id,
            product_url=card.product_url,
            store_name=self.store.name,
            currency=currency,
            brand=brand or UNKNOWN_BRAND,
            name=name,
            sale_price=sale_price,
            original_price=original_price,
            price_reference=convert_to_reference(price, currency),
            discount_percent=discount_percent(sale_price, original_price),
            image_url=card.image_url,
            category_hint=card.category_hint,
            observed_at=datetime.now(timezone.utc).isoformat(),
            metadata={"method": self.method},
        )
