"""
Product identity matching.

Modules:
    brand_matcher - Ordered brand list matching against listing titles
    identity      - Canonical keys and grouping of raw listings
"""

from .brand_matcher import BrandMatcher, get_brand_matcher
from .identity import canonical_key, group_by_key, listing_key, normalized_name

__all__ = [
    'BrandMatcher',
    'get_brand_matcher',
    'canonical_key',
    'group_by_key',
    'listing_key',
    'normalized_name',
]
