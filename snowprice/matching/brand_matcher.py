"""
Brand Matcher

Matches listing titles to known brand names:
1. Structured brand from the platform (e.g. Shopify vendor) when it is known
2. Case-insensitive substring containment against the ordered brand list

The brand list is loaded from config/known_brands.yaml and is ordered: the
first brand contained in a title wins. Substring matching trades precision
for recall; a brand that is part of another word ("Ride" in "Override")
will be attributed. That is a known limitation of this matcher.
"""

import re
from typing import List, Optional, Tuple

from ..common.config_loader import get_brands_lowercase_map, load_known_brands
from ..common.constants import UNKNOWN_BRAND


class BrandMatcher:
    """
    Matches listing titles to known brand names.

    Usage:
        matcher = BrandMatcher()
        brand, name = matcher.split_title("BURTON Custom Camber 158")
        # Returns: ("Burton", "Custom Camber 158")
    """

    def __init__(self, brands: Optional[List[str]] = None):
        """
        Initialize the brand matcher.

        Args:
            brands: Optional ordered list of known brands. If None, loads from config.
        """
        if brands is None:
            self.known_brands = load_known_brands()
        else:
            self.known_brands = list(brands)

        # Create lowercase lookup for case-insensitive matching
        self.brands_lower = get_brands_lowercase_map(self.known_brands)
        self._patterns = [
            (brand, re.compile(re.escape(brand), re.IGNORECASE))
            for brand in self.known_brands
        ]

    def match(self, title: str, structured_brand: str = "") -> str:
        """
        Match a listing to a brand.

        Priority order:
        1. Structured brand from the platform - most reliable
        2. First known brand contained in the title

        Args:
            title: Listing title
            structured_brand: Brand supplied by the platform (vendor field)

        Returns:
            Brand name (canonical capitalization when known) or empty string
        """
        stripped = structured_brand.strip() if structured_brand else ""
        if stripped:
            return self.get_canonical_name(stripped)

        return self.match_from_title(title)

    def match_from_title(self, title: str) -> str:
        """
        Find the first known brand contained in a title.

        Example:
            >>> matcher.match_from_title("2024 LIB TECH T.Rice Pro 157")
            'Lib Tech'
            >>> matcher.match_from_title("Custom Camber")
            ''
        """
        if not title:
            return ""

        for brand, pattern in self._patterns:
            if pattern.search(title):
                return brand

        return ""

    def split_title(self, title: str, structured_brand: str = "") -> Tuple[str, str]:
        """
        Split a raw title into (brand, name).

        The first occurrence of the matched brand is removed from the title.
        Without a match the brand is the "unknown-brand" sentinel and the
        whole title is kept as the name.

        Args:
            title: Raw listing title
            structured_brand: Brand supplied by the platform, if any

        Returns:
            Tuple of (brand, name)
        """
        title = " ".join((title or "").split())
        brand = self.match(title, structured_brand)
        if not brand:
            return UNKNOWN_BRAND, title

        name = re.sub(re.escape(brand), "", title, count=1, flags=re.IGNORECASE)
        name = " ".join(name.split())
        return brand, name or title

    def is_known_brand(self, brand: str) -> bool:
        """
        Check if a brand name is in the known brands list.

        Args:
            brand: Brand name to check

        Returns:
            True if brand is known (case-insensitive)
        """
        return bool(brand) and brand.lower() in self.brands_lower

    def get_canonical_name(self, brand: str) -> str:
        """
        Get the canonical capitalization of a brand name.

        Example:
            >>> matcher.get_canonical_name("BURTON")
            'Burton'
        """
        return self.brands_lower.get(brand.lower(), brand)

    @property
    def brand_count(self) -> int:
        """Return the number of known brands."""
        return len(self.known_brands)


_default_matcher: Optional[BrandMatcher] = None


def get_brand_matcher() -> BrandMatcher:
    """Return a process-wide matcher built from config (loaded once)."""
    global _default_matcher
    if _default_matcher is None:
        _default_matcher = BrandMatcher()
    return _default_matcher
