"""Price and currency normalization."""

from .price import (
    ParsedPrice,
    convert_to_reference,
    detect_currency,
    discount_percent,
    is_reasonable_price,
    normalize_listing,
    parse_price,
)

__all__ = [
    'ParsedPrice',
    'convert_to_reference',
    'detect_currency',
    'discount_percent',
    'is_reasonable_price',
    'normalize_listing',
    'parse_price',
]
