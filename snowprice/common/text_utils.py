"""
Text Utilities

Helper functions for text and URL cleanup in scraped listing cards.
"""

import re
from urllib.parse import urljoin

_TAG_RE = re.compile(r'<[^>]*>')
_WHITESPACE_RE = re.compile(r'\s+')


def clean_text(text: str) -> str:
    """
    Strip HTML remnants and collapse whitespace.

    Example:
        >>> clean_text("  Burton <b>Custom</b>\\n 158 ")
        'Burton Custom 158'
    """
    if not text:
        return ""
    text = _TAG_RE.sub('', text)
    return _WHITESPACE_RE.sub(' ', text).strip()


def absolute_url(href: str, page_url: str) -> str:
    """
    Resolve a (possibly protocol-relative or relative) link against its page.

    Example:
        >>> absolute_url("//cdn.shop.com/a.jpg", "https://shop.com/boards")
        'https://cdn.shop.com/a.jpg'
        >>> absolute_url("/products/custom", "https://shop.com/boards?page=2")
        'https://shop.com/products/custom'
    """
    href = (href or "").strip()
    if not href:
        return ""
    if href.startswith('//'):
        return 'https:' + href
    return urljoin(page_url, href)


def contains_any(text: str, keywords) -> bool:
    """Case-insensitive containment of any keyword."""
    lowered = (text or "").lower()
    return any(kw in lowered for kw in keywords)
