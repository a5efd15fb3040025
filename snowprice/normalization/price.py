"""
Currency & Price Normalizer

Turns free-text price strings into (amount, currency), converts amounts to
the reference currency (JPY) and flags values outside a plausible window.

Everything here fails softly: malformed text yields amount=None, an unknown
currency yields no reference price. The only exception that escapes is
OutOfRangeValue from normalize_listing(), which the catalog merger catches
and counts.
"""

from __future__ import annotations

import logging
import re
from dataclasses import replace
from typing import Dict, NamedTuple, Optional

from ..common.constants import CURRENCY_SYMBOLS, DEFAULT_PRICE_RANGE, EXCHANGE_RATES
from ..errors import OutOfRangeValue, PriceParseError
from ..models import RawListing

logger = logging.getLogger(__name__)

_NON_NUMERIC_RE = re.compile(r"[^\d.,]")

# Multi-character symbols must be tried before the bare "$" they contain,
# otherwise "C$" and "NT$" would always read as USD.
_SYMBOL_SCAN_ORDER = sorted(CURRENCY_SYMBOLS, key=lambda item: -len(item[0]))


class ParsedPrice(NamedTuple):
    amount: Optional[float]
    currency: str


def detect_currency(text: str, default_currency: str = "USD") -> str:
    """Return the currency of the first symbol found in text, else the default."""
    for symbol, code in _SYMBOL_SCAN_ORDER:
        if symbol in text:
            return code
    return default_currency


def _to_number(text: str) -> float:
    """
    Extract a number, resolving thousands vs. decimal separators.

    Raises:
        PriceParseError: If no number can be read
    """
    cleaned = _NON_NUMERIC_RE.sub("", text)
    if not cleaned:
        raise PriceParseError(f"no digits in {text!r}")

    has_comma = "," in cleaned
    has_dot = "." in cleaned

    if has_comma and has_dot:
        # The separator that appears later is the decimal point
        if cleaned.rfind(",") > cleaned.rfind("."):
            num_str = cleaned.replace(".", "").replace(",", ".")
        else:
            num_str = cleaned.replace(",", "")
    elif has_comma:
        head, _, tail = cleaned.rpartition(",")
        if cleaned.count(",") == 1 and len(tail) == 2:
            num_str = f"{head}.{tail}"
        else:
            num_str = cleaned.replace(",", "")
    elif cleaned.count(".") > 1:
        # "1.234.567" - dots can only be grouping here
        num_str = cleaned.replace(".", "")
    else:
        num_str = cleaned

    try:
        return float(num_str)
    except ValueError as exc:
        raise PriceParseError(f"unparsable price {text!r}") from exc


def parse_price(text: Optional[str], default_currency: str = "USD") -> ParsedPrice:
    """
    Parse a free-text price.

    Args:
        text: Price text as scraped (e.g. "¥12,345", "1.234,56 €", "$499.99")
        default_currency: Currency used when no symbol is present

    Returns:
        ParsedPrice(amount, currency); amount is None when unparsable

    Example:
        >>> parse_price("¥12,345")
        ParsedPrice(amount=12345.0, currency='JPY')
        >>> parse_price("1.234,56", "EUR")
        ParsedPrice(amount=1234.56, currency='EUR')
    """
    if not text:
        return ParsedPrice(None, default_currency)

    currency = detect_currency(text, default_currency)
    try:
        amount = _to_number(text)
    except PriceParseError as exc:
        logger.debug("price parse failed: %s", exc)
        amount = None
    return ParsedPrice(amount, currency)


def convert_to_reference(
    amount: Optional[float],
    currency: str,
    rates: Optional[Dict[str, float]] = None,
) -> Optional[int]:
    """
    Convert an amount to the reference currency, rounded to whole yen.

    Returns:
        Reference amount, or None for a missing amount or unknown currency
    """
    if amount is None:
        return None
    rate = (rates or EXCHANGE_RATES).get(currency)
    if rate is None:
        logger.debug("no exchange rate for %s", currency)
        return None
    return round(amount * rate)


def is_reasonable_price(
    amount: Optional[float],
    currency: str,
    price_ranges: Optional[Dict[str, Dict[str, float]]] = None,
    rates: Optional[Dict[str, float]] = None,
) -> bool:
    """
    Range-check a price after conversion to the reference currency.

    Missing prices and currencies without a rate cannot be checked and are
    reported as reasonable; they sort last in offer lists instead.
    """
    reference = convert_to_reference(amount, currency, rates)
    if reference is None:
        return True
    bounds = (price_ranges or {}).get(currency, DEFAULT_PRICE_RANGE)
    return bounds["min"] <= reference <= bounds["max"]


def discount_percent(sale_price: Optional[float], original_price: Optional[float]) -> Optional[int]:
    """Whole-percent discount when the original price is above the sale price."""
    if not sale_price or not original_price or original_price <= sale_price:
        return None
    return round((1 - sale_price / original_price) * 100)


def normalize_listing(
    listing: RawListing,
    price_ranges: Optional[Dict[str, Dict[str, float]]] = None,
    rates: Optional[Dict[str, float]] = None,
) -> RawListing:
    """
    Recompute the derived price fields of a listing.

    Raises:
        OutOfRangeValue: If the reference price is outside the plausible window
    """
    price = listing.sale_price if listing.sale_price is not None else listing.original_price
    reference = convert_to_reference(price, listing.currency, rates)

    if not is_reasonable_price(price, listing.currency, price_ranges, rates):
        raise OutOfRangeValue(listing.product_url, reference)

    return replace(
        listing,
        price_reference=reference,
        discount_percent=discount_percent(listing.sale_price, listing.original_price),
    )
