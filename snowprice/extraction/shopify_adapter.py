"""
Shopify JSON Adapter

Reads a Shopify collection through its public products.json endpoint:
/collections/<handle>/products.json?page=N&limit=250, up to 10 pages.
Vendor is used as the structured brand, the first variant supplies price
and compare-at price, and product_type becomes the platform category hint.
"""

from __future__ import annotations

import logging
import re
import time
from typing import Any, Callable, Dict, List, Optional, Set
from urllib.parse import urlparse

import requests

from ..common.constants import METHOD_SHOPIFY_JSON
from ..errors import SourceUnreachable
from ..matching.brand_matcher import BrandMatcher
from ..models import CategoryHint, RawListing, StoreCategory, StoreConfig
from .base import DEFAULT_HEADERS, ExtractionAdapter
from .listing_builder import ListingBuilder, ParsedCard

logger = logging.getLogger(__name__)

_COLLECTION_RE = re.compile(r"/collections/([^/?#]+)")

PAGE_LIMIT = 250
MAX_PAGES = 10


def collection_handle(url: str) -> Optional[str]:
    """
    Example:
        >>> collection_handle("https://shop.com/collections/sale-snowboard?product_type=Snowboards")
        'sale-snowboard'
    """
    match = _COLLECTION_RE.search(urlparse(url).path)
    return match.group(1) if match else None


def _to_float(value: Any) -> Optional[float]:
    if value in (None, ""):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class ShopifyJsonAdapter(ExtractionAdapter):
    """Shopify collection JSON API extraction."""

    method = METHOD_SHOPIFY_JSON

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: float = 30.0,
        page_delay: float = 1.0,
        brand_matcher: Optional[BrandMatcher] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.session = session or requests.Session()
        self.timeout = timeout
        self.page_delay = page_delay
        self.brand_matcher = brand_matcher
        self._sleep = sleep

    def fetch(self, store: StoreConfig) -> List[RawListing]:
        builder = ListingBuilder(store, self.method, self.brand_matcher)
        listings: List[RawListing] = []
        seen_urls: Set[str] = set()
        attempted = reached = 0
        last_error = ""

        for category_page in store.listing_pages():
            if collection_handle(category_page.url) is None:
                logger.info("%s: %s is not a Shopify collection URL", store.id, category_page.url)
                continue
            attempted += 1
            try:
                listings.extend(self._fetch_collection(store, category_page, builder, seen_urls))
                reached += 1
            except requests.RequestException as e:
                last_error = f"{type(e).__name__}: {e}"
                logger.warning("%s: JSON API failed for %s: %s", store.id, category_page.url, last_error)

        if attempted and not reached:
            raise SourceUnreachable(f"{store.id}: {last_error}")

        logger.info("%s: %d listings via %s", store.id, len(listings), self.method)
        return listings

    def _fetch_collection(
        self,
        store: StoreConfig,
        category_page: StoreCategory,
        builder: ListingBuilder,
        seen_urls: Set[str],
    ) -> List[RawListing]:
        parsed = urlparse(category_page.url)
        origin = f"{parsed.scheme}://{parsed.netloc}"
        json_url = f"{origin}/collections/{collection_handle(category_page.url)}/products.json"
        headers = dict(DEFAULT_HEADERS, Accept="application/json")

        listings: List[RawListing] = []
        for page_number in range(1, MAX_PAGES + 1):
            response = self.session.get(
                json_url,
                params={"page": page_number, "limit": PAGE_LIMIT},
                headers=headers,
                timeout=self.timeout,
            )
            if response.status_code == 404:
                logger.info("%s: JSON API not available (404)", store.id)
                return []
            response.raise_for_status()

            try:
                data = response.json()
            except ValueError:
                logger.warning("%s: page %d is not JSON, stopping", store.id, page_number)
                break
            if not isinstance(data, dict):
                logger.warning("%s: page %d is not a products document, stopping", store.id, page_number)
                break
            products = data.get("products") or []
            if not isinstance(products, list) or not products:
                break

            for product in products:
                card = self._to_card(product, origin, category_page)
                if card is None or card.product_url in seen_urls:
                    continue
                seen_urls.add(card.product_url)
                listing = builder.build(card)
                if listing is not None:
                    listings.append(listing)

            logger.info("%s: JSON page %d: %d products (%d listings)",
                        store.id, page_number, len(products), len(listings))
            if len(products) < PAGE_LIMIT:
                break
            self._sleep(self.page_delay)

        return listings

    @staticmethod
    def _to_card(product: Dict[str, Any], origin: str, category_page: StoreCategory) -> Optional[ParsedCard]:
        handle = product.get("handle")
        if not handle:
            return None

        variants = product.get("variants") or [{}]
        variant = variants[0] or {}

        image_url = ""
        images = product.get("images") or []
        if images:
            image_url = images[0].get("src") or ""
            if image_url.startswith("//"):
                image_url = "https:" + image_url

        return ParsedCard(
            title=product.get("title") or "",
            product_url=f"{origin}/products/{handle}",
            sale_price=_to_float(variant.get("price")),
            original_price=_to_float(variant.get("compare_at_price")),
            image_url=image_url,
            structured_brand=product.get("vendor") or "",
            category_hint=CategoryHint(
                product_type=product.get("product_type") or "",
                source_url=category_page.url,
                store_category=category_page.category,
            ),
        )
