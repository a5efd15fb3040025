"""
Product Identity Resolver

Derives a deterministic canonical key from (brand, name) so that the same
board listed by different stores lands in the same group.

Stores format titles differently mostly around model years and sizes
("Custom 158cm 2023" vs "Custom"), so year and size tokens are stripped
before the key is built. Distinct products can collapse onto one key this
way; the merger reports suspected collisions but never splits them.
"""

import hashlib
import re
from collections import defaultdict
from typing import Dict, Iterable, List

from ..models import RawListing

# 4-digit model year, optionally followed by "/" and a season suffix (2023/24)
_YEAR_RE = re.compile(r"20\d{2}/?\d{0,2}")
# 2-3 digit sizes with an optional cm / wide / mount suffix (158, 158CM, 156W)
_SIZE_RE = re.compile(r"\d{2,3}(?:CM|W|M)?")
_WHITESPACE_RE = re.compile(r"\s+")
_NON_KEY_RE = re.compile(r"[^a-z0-9]")
_SEPARATOR_RUN_RE = re.compile(r"-+")


def normalized_name(brand: str, name: str) -> str:
    """
    Uppercased brand + name with year and size noise removed.

    Example:
        >>> normalized_name("Burton", "Custom 158cm 2023")
        'BURTON CUSTOM'
    """
    combined = f"{brand or ''} {name or ''}".upper()
    combined = _YEAR_RE.sub("", combined)
    combined = _SIZE_RE.sub("", combined)
    return _WHITESPACE_RE.sub(" ", combined).strip()


def _slug(text: str) -> str:
    slug = _NON_KEY_RE.sub("-", text.lower())
    return _SEPARATOR_RUN_RE.sub("-", slug).strip("-")


def canonical_key(brand: str, name: str) -> str:
    """
    Deterministic identity key for a (brand, name) pair.

    Lowercase ASCII with every other character turned into "-". Names
    without any ASCII letters or digits fall back to a short digest of the
    normalized name, so the key stays a pure function of (brand, name).

    Example:
        >>> canonical_key("Burton", "Custom 158cm 2023")
        'burton-custom'
    """
    normalized = normalized_name(brand, name)
    key = _slug(normalized)
    # A title with no Latin letters or digits would otherwise reduce to the
    # brand alone (often the unknown-brand sentinel) and merge unrelated items
    name_part = normalized_name("", name)
    if key and (_slug(name_part) or not name_part):
        return key
    digest = hashlib.sha1(normalized.encode("utf-8")).hexdigest()[:12]
    return f"item-{digest}"


def listing_key(listing: RawListing) -> str:
    return canonical_key(listing.brand, listing.name)


def group_by_key(listings: Iterable[RawListing]) -> Dict[str, List[RawListing]]:
    """Group listings by canonical key, preserving input order inside a group."""
    groups: Dict[str, List[RawListing]] = defaultdict(list)
    for listing in listings:
        groups[listing_key(listing)].append(listing)
    return dict(groups)
