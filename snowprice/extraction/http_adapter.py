"""
HTTP Listing Adapter

Fetches server-rendered listing pages with requests and parses product
cards with BeautifulSoup. Pages of one store are fetched sequentially with
a politeness delay; pagination stops at max_pages or at the first page
that adds no new product URLs.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Dict, List, Optional, Set

import requests

from ..common.constants import METHOD_HTTP
from ..errors import SourceUnreachable
from ..matching.brand_matcher import BrandMatcher
from ..models import RawListing, StoreCategory, StoreConfig
from .base import DEFAULT_HEADERS, ExtractionAdapter
from .card_parser import parse_cards
from .listing_builder import ListingBuilder

logger = logging.getLogger(__name__)


class HttpListingAdapter(ExtractionAdapter):
    """Plain HTTP + HTML extraction."""

    method = METHOD_HTTP

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: float = 30.0,
        page_delay: float = 1.5,
        max_pages: Optional[int] = None,
        brand_matcher: Optional[BrandMatcher] = None,
        sleep: Callable[[float], None] = time.sleep,
        on_page: Optional[Callable[[str, int, int], None]] = None,
    ):
        """
        Args:
            session: Shared requests session (created if None)
            timeout: Per-request timeout in seconds
            page_delay: Delay between pages of one store
            max_pages: Page cap; the store's max_pages when None
            brand_matcher: Matcher for brand/name split (config brands if None)
            sleep: Delay function (replaced in tests)
            on_page: Called with (store name, page, page cap) before each page
        """
        self.session = session or requests.Session()
        self.timeout = timeout
        self.page_delay = page_delay
        self.max_pages = max_pages
        self.brand_matcher = brand_matcher
        self._sleep = sleep
        self.on_page = on_page

    def page_params(self, store: StoreConfig, page_number: int) -> Dict[str, str]:
        """Query parameters for one page; page 1 carries no page parameter."""
        params = dict(store.params)
        if page_number > 1:
            params[store.page_param] = str(page_number)
        return params

    def get_html(self, url: str, params: Dict[str, str]) -> str:
        response = self.session.get(url, params=params, headers=DEFAULT_HEADERS, timeout=self.timeout)
        response.raise_for_status()
        return response.text

    def fetch(self, store: StoreConfig) -> List[RawListing]:
        builder = ListingBuilder(store, self.method, self.brand_matcher)
        listings: List[RawListing] = []
        seen_urls: Set[str] = set()
        reached = False
        last_error = ""

        for category_page in store.listing_pages():
            try:
                listings.extend(self._fetch_category(store, category_page, builder, seen_urls))
                reached = True
            except requests.RequestException as e:
                last_error = f"{type(e).__name__}: {e}"
                logger.warning("%s: could not fetch %s: %s", store.id, category_page.url, last_error)

        if not reached:
            raise SourceUnreachable(f"{store.id}: {last_error or 'no pages fetched'}")

        logger.info("%s: %d listings via %s", store.id, len(listings), self.method)
        return listings

    def _fetch_category(
        self,
        store: StoreConfig,
        category_page: StoreCategory,
        builder: ListingBuilder,
        seen_urls: Set[str],
    ) -> List[RawListing]:
        """
        Paginate one listing page.

        Raises:
            requests.RequestException: Only when the first page fails;
                later page failures end pagination
        """
        max_pages = self.max_pages or store.max_pages
        listings: List[RawListing] = []

        for page_number in range(1, max_pages + 1):
            if self.on_page is not None:
                self.on_page(store.name, page_number, max_pages)
            params = self.page_params(store, page_number)
            try:
                html = self.get_html(category_page.url, params)
            except requests.RequestException as e:
                if page_number == 1:
                    raise
                logger.warning("%s: page %d failed, stopping: %s", store.id, page_number, e)
                break

            cards = parse_cards(html, category_page.url, category_page.category)
            new_cards = [c for c in cards if c.product_url not in seen_urls]
            if not new_cards:
                logger.info("%s: page %d added no new products, stopping", store.id, page_number)
                break

            for card in new_cards:
                seen_urls.add(card.product_url)
                listing = builder.build(card)
                if listing is not None:
                    listings.append(listing)

            logger.info("%s: page %d: %d new cards (%d listings)",
                        store.id, page_number, len(new_cards), len(listings))
            if page_number < max_pages:
                self._sleep(self.page_delay)

        return listings
