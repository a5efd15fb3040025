"""
Category Classifier

Assigns exactly one category id to a raw listing by walking an ordered rule
chain. The first rule that returns a category wins:

1. manual override        - operator pinned the canonical key to a category
2. platform type          - Shopify product_type via type_mapping, or the
                            category the store registry declares for the page
3. breadcrumb             - breadcrumb text against breadcrumb keywords
4. url                    - product / source URL path fragments
5. learned keywords       - operator-supplied title keywords
6. title keywords         - static include/exclude keywords
7. uncategorized

Within rules 3-6 categories are tried in config order (specific before
generic), so a "Snowboard Binding" never lands in "snowboard".
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Iterable, List, Optional
from urllib.parse import urlparse

from ..common.config_loader import load_category_config, load_type_mapping
from ..common.constants import UNCATEGORIZED
from ..matching.identity import listing_key
from ..models import CanonicalProduct, RawListing
from .overrides import OverrideStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClassificationRule:
    """A named rule returning a category id, or None when it has no opinion."""
    name: str
    decide: Callable[[RawListing], Optional[str]]


class CategoryClassifier:
    """
    Rule-chain classifier over a closed category set.

    Usage:
        classifier = CategoryClassifier(overrides=OverrideStore.load(path))
        category = classifier.classify(listing)
        listing = classifier.classify_listing(listing)
    """

    def __init__(
        self,
        categories: Optional[List[Dict[str, Any]]] = None,
        type_mapping: Optional[Dict[str, str]] = None,
        overrides: Optional[OverrideStore] = None,
    ):
        """
        Initialize the classifier.

        Args:
            categories: Category definitions in precedence order. If None, loads from config.
            type_mapping: Platform product type -> category id. If None, loads from config.
            overrides: Manual overrides and learned keywords (empty if None)
        """
        self.categories = categories if categories is not None else load_category_config()
        mapping = type_mapping if type_mapping is not None else load_type_mapping()
        self.type_mapping = {k.lower(): v for k, v in mapping.items()}
        self.category_ids = [c['id'] for c in self.categories]
        self.overrides = overrides or OverrideStore(valid_categories=self.valid_categories)

        self.rules: List[ClassificationRule] = [
            ClassificationRule("manual", self._by_manual_override),
            ClassificationRule("platform_type", self._by_platform_type),
            ClassificationRule("breadcrumb", self._by_breadcrumb),
            ClassificationRule("url", self._by_url),
            ClassificationRule("learned_keyword", self._by_learned_keyword),
            ClassificationRule("title_keyword", self._by_title_keyword),
        ]

    @property
    def valid_categories(self) -> List[str]:
        return self.category_ids + [UNCATEGORIZED]

    def classify(self, listing: RawListing) -> str:
        """Return the category id of the first decisive rule."""
        for rule in self.rules:
            category = rule.decide(listing)
            if category:
                logger.debug("%s -> %s (%s)", listing.product_url, category, rule.name)
                return category
        return UNCATEGORIZED

    def classify_listing(self, listing: RawListing) -> RawListing:
        """Return a copy of the listing with categories set to [category]."""
        return replace(listing, categories=[self.classify(listing)])

    # ── Rules ────────────────────────────────────────────────────────────────

    def _by_manual_override(self, listing: RawListing) -> Optional[str]:
        return self.overrides.manual_category(listing_key(listing))

    def _by_platform_type(self, listing: RawListing) -> Optional[str]:
        hint = listing.category_hint
        product_type = hint.product_type.strip().lower()
        if product_type and product_type in self.type_mapping:
            return self.type_mapping[product_type]
        if hint.store_category in self.category_ids:
            return hint.store_category
        return None

    def _by_breadcrumb(self, listing: RawListing) -> Optional[str]:
        breadcrumb = listing.category_hint.breadcrumb.lower()
        if not breadcrumb:
            return None
        for category in self.categories:
            if any(kw in breadcrumb for kw in category['breadcrumb_keywords']):
                return category['id']
        return None

    def _by_url(self, listing: RawListing) -> Optional[str]:
        paths = [
            urlparse(url).path.lower()
            for url in (listing.product_url, listing.category_hint.source_url)
            if url
        ]
        for category in self.categories:
            for pattern in category['url_patterns']:
                if any(pattern in path for path in paths):
                    return category['id']
        return None

    def _by_learned_keyword(self, listing: RawListing) -> Optional[str]:
        title = _title(listing)
        for category_id in self.category_ids:
            keywords = self.overrides.learned_keywords.get(category_id, [])
            if any(kw in title for kw in keywords):
                return category_id
        return None

    def _by_title_keyword(self, listing: RawListing) -> Optional[str]:
        title = _title(listing)
        for category in self.categories:
            if not any(kw in title for kw in category['keywords']):
                continue
            if any(kw in title for kw in category['exclude_keywords']):
                continue
            return category['id']
        return None


def _title(listing: RawListing) -> str:
    return f"{listing.brand} {listing.name}".lower()


def filter_allowed(
    products: Iterable[CanonicalProduct],
    allowed: Iterable[str],
) -> List[CanonicalProduct]:
    """Keep canonical products holding at least one allowed category."""
    allowed_set = set(allowed)
    return [p for p in products if allowed_set.intersection(p.categories)]
