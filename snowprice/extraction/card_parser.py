"""
Product Card Parser

Generic listing-page parser shared by the HTTP and browser adapters.
Tries ordered selector lists for product cards, titles, prices and images;
the first selector that matches anything wins. There are no per-store
selectors; these lists cover the common storefront themes (Shopify, BASE,
WooCommerce, Japanese shop builders).
"""

from __future__ import annotations

import logging
from typing import List, Optional

from bs4 import BeautifulSoup, Tag

from ..common.text_utils import absolute_url, clean_text
from ..models import CategoryHint
from .listing_builder import ParsedCard

logger = logging.getLogger(__name__)

CARD_SELECTORS = [
    '.product-card', '.product-item', '.product',
    '[class*="product-block"]', '[class*="product-grid"]',
    '.grid-product', '.collection-product', '.ProductListItem',
    'li[class*="product"]', 'article[class*="product"]',
    '.item', '.goods-item', '.product-tile',
    '[data-product]', '[data-product-id]',
]

# Links that look like product detail pages, for cards without a known class
PRODUCT_LINK_SELECTOR = (
    'a[href*="/product"], a[href*="/products/"], a[href*="ProductDetail"], a[href*="/items/"]'
)
CARD_LINK_SELECTOR = PRODUCT_LINK_SELECTOR + ', a[href*="item"]'

TITLE_SELECTORS = [
    '.product-title', '.product-name', '.product__title',
    '[class*="product-title"]', '[class*="product-name"]',
    '.title', '.name', 'h2', 'h3', 'h4',
    '.grid-product__title', '.item-title',
]

PRICE_SELECTORS = [
    '.sale-price', '.price--sale', '.price-item--sale',
    '.price', '.product-price', '.product__price',
    '[class*="price"]', '.money', '.amount',
    '.grid-product__price', '.item-price',
]

ORIGINAL_PRICE_SELECTORS = [
    '.compare-at-price', '.price--compare', '.price-item--regular',
    '.was-price', 'del', 's',
]

BREADCRUMB_SELECTORS = [
    'nav[aria-label="breadcrumb"]', '.breadcrumb', '.breadcrumbs', '[class*="breadcrumb"]',
]

_STRIKE_TAGS = ('s', 'del')


def _text(el: Tag, skip_struck: bool = False) -> str:
    """Visible text of an element, optionally ignoring struck-through prices."""
    parts = []
    for node in el.find_all(string=True):
        parent = node.parent
        if parent is not None and parent.name in ('script', 'style'):
            continue
        if skip_struck and parent is not None and parent.name in _STRIKE_TAGS:
            continue
        parts.append(str(node))
    return clean_text(' '.join(parts))


def _image_url(card: Tag, page_url: str) -> str:
    img = card.find('img')
    if img is None:
        return ""
    src = img.get('src') or img.get('data-src') or img.get('data-lazy-src') or ''
    if not src and img.get('data-srcset'):
        src = img['data-srcset'].split(' ')[0]
    # Shopify responsive placeholders
    src = src.replace('{width}', '400')
    return absolute_url(src, page_url)


def _title(card: Tag, link: Optional[Tag]) -> str:
    for selector in TITLE_SELECTORS:
        el = card.select_one(selector)
        if el is not None:
            text = _text(el)
            if text:
                return text
    if link is not None:
        text = _text(link)
        if text:
            return text
    img = card.find('img')
    if img is not None and img.get('alt'):
        return clean_text(img['alt'])
    anchor = card.find('a', title=True)
    return clean_text(anchor['title']) if anchor is not None else ""


def _price_texts(card: Tag):
    sale = ""
    for selector in PRICE_SELECTORS:
        el = card.select_one(selector)
        if el is not None:
            sale = _text(el, skip_struck=True)
            if sale:
                break
    original = ""
    for selector in ORIGINAL_PRICE_SELECTORS:
        el = card.select_one(selector)
        if el is not None:
            original = _text(el)
            if original:
                break
    return sale, original


def find_cards(soup: BeautifulSoup) -> List[Tag]:
    """Product card elements, by the first matching card selector."""
    for selector in CARD_SELECTORS:
        cards = soup.select(selector)
        if cards:
            return cards

    # No known card class: use the closest container of each product link
    cards: List[Tag] = []
    seen = set()
    for link in soup.select(PRODUCT_LINK_SELECTOR):
        parent = link.find_parent(['li', 'article']) or link.find_parent(
            'div', class_=lambda c: bool(c) and ('product' in c or 'item' in c)
        )
        if parent is not None and id(parent) not in seen:
            seen.add(id(parent))
            cards.append(parent)
    return cards


def page_breadcrumb(soup: BeautifulSoup) -> str:
    for selector in BREADCRUMB_SELECTORS:
        el = soup.select_one(selector)
        if el is not None:
            crumbs = [clean_text(a.get_text()) for a in el.find_all(['a', 'li', 'span'])]
            crumbs = [c for c in crumbs if c]
            if crumbs:
                return ' > '.join(dict.fromkeys(crumbs))
            return _text(el)
    return ""


def parse_cards(html: str, page_url: str, store_category: str = "") -> List[ParsedCard]:
    """
    Parse every product card on a listing page.

    Args:
        html: Listing page HTML
        page_url: URL the HTML was loaded from (for relative links)
        store_category: Category id the store declares for this page

    Returns:
        Cards with a product URL, in page order, unique by URL
    """
    soup = BeautifulSoup(html, "lxml")
    hint = CategoryHint(
        breadcrumb=page_breadcrumb(soup),
        source_url=page_url,
        store_category=store_category,
    )

    parsed: List[ParsedCard] = []
    seen_urls = set()
    for card in find_cards(soup):
        if card.name == 'a' and card.get('href'):
            link = card
        else:
            link = card.select_one(CARD_LINK_SELECTOR) or card.find('a', href=True)
        if link is None or not link.get('href'):
            continue

        product_url = absolute_url(link['href'], page_url)
        if product_url in seen_urls:
            continue
        seen_urls.add(product_url)

        sale_text, original_text = _price_texts(card)
        parsed.append(ParsedCard(
            title=_title(card, link),
            product_url=product_url,
            price_text=sale_text,
            original_price_text=original_text,
            image_url=_image_url(card, page_url),
            category_hint=hint,
        ))

    logger.debug("Parsed %d cards from %s", len(parsed), page_url)
    return parsed
