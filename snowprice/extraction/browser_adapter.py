"""
Browser Listing Adapter

Renders listing pages in headless Chromium (Playwright sync API) for
stores that build their product grid with JavaScript. After the first
render it keeps clicking "load more" buttons, or scrolling when there is
none, until no new products appear or the round limit is reached, then
hands the rendered HTML to the shared card parser.

Playwright is an optional dependency (the "browser" extra) and is imported
only when a browser extraction actually runs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Optional, Set

from ..common.constants import METHOD_BROWSER, METHOD_BROWSER_HIGH_ACCURACY
from ..errors import SourceUnreachable
from ..matching.brand_matcher import BrandMatcher
from ..models import RawListing, StoreConfig
from .base import DEFAULT_HEADERS, ExtractionAdapter
from .card_parser import parse_cards
from .listing_builder import ListingBuilder

logger = logging.getLogger(__name__)

LOAD_MORE_SELECTORS = [
    '#paginatorButton',
    '[class*="paginatorButton"]',
    'button:has-text("もっと見る")', 'a:has-text("もっと見る")',
    'button:has-text("さらに表示")', 'a:has-text("さらに表示")',
    'button:has-text("Load More")', 'a:has-text("Load More")',
    'button:has-text("MORE")', 'a:has-text("MORE")',
    '.load-more', '.loadMore', '[class*="load-more"]', '[class*="loadMore"]',
    '.show-more', '.showMore', '[class*="show-more"]',
    '.p-loadMoreBtn', '[class*="LoadMore"]',
]

# Counts distinct product links currently in the DOM
_COUNT_PRODUCTS_JS = """
() => {
  const selectors = [
    'a[href*="/items/"]', 'a[href*="/product"]', 'a[href*="/products/"]',
    '.product-card a', '.product-item a', '[class*="ItemCard"] a'
  ];
  const seen = new Set();
  for (const sel of selectors) {
    document.querySelectorAll(sel).forEach(el => {
      const href = el.getAttribute('href');
      if (href) seen.add(href);
    });
  }
  return seen.size;
}
"""

_LAUNCH_ARGS = ['--no-sandbox', '--disable-setuid-sandbox', '--disable-dev-shm-usage']


@dataclass(frozen=True)
class RenderSettings:
    """Waits in milliseconds and the load-more round limit."""
    settle_ms: int = 3000
    click_wait_ms: int = 2500
    scroll_wait_ms: int = 1500
    max_rounds: int = 20
    max_idle_rounds: int = 2


STANDARD = RenderSettings()
HIGH_ACCURACY = RenderSettings(settle_ms=5000, click_wait_ms=5000, scroll_wait_ms=3000,
                               max_rounds=30, max_idle_rounds=3)


class BrowserListingAdapter(ExtractionAdapter):
    """Headless browser extraction, standard or high accuracy."""

    requires_rendering = True

    def __init__(
        self,
        high_accuracy: bool = False,
        navigation_timeout: float = 60.0,
        brand_matcher: Optional[BrandMatcher] = None,
    ):
        self.high_accuracy = high_accuracy
        self.method = METHOD_BROWSER_HIGH_ACCURACY if high_accuracy else METHOD_BROWSER
        self.settings = HIGH_ACCURACY if high_accuracy else STANDARD
        self.navigation_timeout_ms = int(navigation_timeout * 1000)
        self.brand_matcher = brand_matcher

    def fetch(self, store: StoreConfig) -> List[RawListing]:
        try:
            from playwright.sync_api import Error as PlaywrightError
            from playwright.sync_api import sync_playwright
        except ImportError as e:
            raise SourceUnreachable(
                "browser extraction requires playwright (pip install 'snowprice[browser]')"
            ) from e

        builder = ListingBuilder(store, self.method, self.brand_matcher)
        listings: List[RawListing] = []
        seen_urls: Set[str] = set()
        reached = False
        last_error = ""

        try:
            with sync_playwright() as playwright:
                browser = playwright.chromium.launch(headless=True, args=_LAUNCH_ARGS)
                try:
                    page = browser.new_page(
                        user_agent=DEFAULT_HEADERS["User-Agent"],
                        viewport={"width": 1920, "height": 1080},
                    )
                    for category_page in store.listing_pages():
                        try:
                            html = self.render(page, category_page.url)
                        except PlaywrightError as e:
                            last_error = str(e)
                            logger.warning("%s: could not render %s: %s", store.id, category_page.url, e)
                            continue
                        reached = True
                        for card in parse_cards(html, category_page.url, category_page.category):
                            if card.product_url in seen_urls:
                                continue
                            seen_urls.add(card.product_url)
                            listing = builder.build(card)
                            if listing is not None:
                                listings.append(listing)
                finally:
                    browser.close()
        except PlaywrightError as e:
            raise SourceUnreachable(f"{store.id}: browser failed: {e}") from e

        if not reached:
            raise SourceUnreachable(f"{store.id}: {last_error or 'no pages rendered'}")

        logger.info("%s: %d listings via %s", store.id, len(listings), self.method)
        return listings

    def render(self, page, url: str) -> str:
        """Load a page, expand the product grid and return the rendered HTML."""
        logger.info("Rendering %s", url)
        page.goto(url, wait_until="networkidle", timeout=self.navigation_timeout_ms)
        page.wait_for_timeout(self.settings.settle_ms)
        self.load_all_products(page)
        page.evaluate("() => window.scrollTo(0, document.body.scrollHeight)")
        page.wait_for_timeout(self.settings.scroll_wait_ms)
        return page.content()

    def load_all_products(self, page) -> int:
        """
        Click "load more" (or scroll) until the product count stops growing.

        Returns:
            Number of rounds performed
        """
        idle_rounds = 0
        for round_number in range(1, self.settings.max_rounds + 1):
            before = page.evaluate(_COUNT_PRODUCTS_JS)

            if self._click_load_more(page):
                page.wait_for_timeout(self.settings.click_wait_ms)
                after = page.evaluate(_COUNT_PRODUCTS_JS)
                if after > before:
                    logger.debug("Load more: %d -> %d products", before, after)
                    idle_rounds = 0
                    continue
                idle_rounds += 1
                if idle_rounds >= self.settings.max_idle_rounds:
                    return round_number
                continue

            height = page.evaluate("() => document.body.scrollHeight")
            page.evaluate("() => window.scrollTo(0, document.body.scrollHeight)")
            page.wait_for_timeout(self.settings.scroll_wait_ms)
            if page.evaluate("() => document.body.scrollHeight") == height:
                return round_number

        return self.settings.max_rounds

    @staticmethod
    def _click_load_more(page) -> bool:
        from playwright.sync_api import Error as PlaywrightError

        for selector in LOAD_MORE_SELECTORS:
            try:
                button = page.locator(selector).first
                if button.count() and button.is_visible():
                    button.click(timeout=2000)
                    return True
            except PlaywrightError:
                continue
        return False
