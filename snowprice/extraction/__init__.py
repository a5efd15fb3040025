"""
Listing extraction adapters.

Modules:
    base             - ExtractionAdapter contract and shared request headers
    listing_builder  - Parsed card -> RawListing (brand split, prices)
    card_parser      - Generic product-card parser for listing-page HTML
    http_adapter     - requests + BeautifulSoup, paginated
    shopify_adapter  - Shopify collection products.json API
    browser_adapter  - Playwright rendering, standard and high accuracy
    registry         - Method id -> adapter
"""

from .base import ExtractionAdapter
from .browser_adapter import BrowserListingAdapter
from .card_parser import parse_cards
from .http_adapter import HttpListingAdapter
from .listing_builder import ListingBuilder, ParsedCard, is_accessory
from .registry import get_adapter, requires_rendering
from .shopify_adapter import ShopifyJsonAdapter

__all__ = [
    'ExtractionAdapter',
    'BrowserListingAdapter',
    'HttpListingAdapter',
    'ShopifyJsonAdapter',
    'ListingBuilder',
    'ParsedCard',
    'is_accessory',
    'parse_cards',
    'get_adapter',
    'requires_rendering',
]
