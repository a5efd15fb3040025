"""
Shared constants for the project.

This module contains application-wide constants that should have a single source of truth.
"""

# Reference currency: every price is converted to JPY for comparison and range checks
REFERENCE_CURRENCY = "JPY"

# Static exchange rates (units of JPY per 1 unit of currency)
EXCHANGE_RATES = {
    "JPY": 1,
    "CAD": 110,
    "USD": 150,
    "EUR": 160,
    "GBP": 190,
    "AUD": 100,
    "TWD": 4.8,
}

# Currency symbol detection table (scanned longest symbol first)
CURRENCY_SYMBOLS = (
    ("$", "USD"),
    ("¥", "JPY"),
    ("￥", "JPY"),
    ("€", "EUR"),
    ("£", "GBP"),
    ("C$", "CAD"),
    ("CA$", "CAD"),
    ("A$", "AUD"),
    ("AU$", "AUD"),
    ("NT$", "TWD"),
    ("TWD", "TWD"),
)

# Plausible price window in reference units, used when a currency has no override
DEFAULT_PRICE_RANGE = {"min": 10_000, "max": 500_000}

# Sentinels
UNKNOWN_BRAND = "unknown-brand"
UNCATEGORIZED = "uncategorized"

# Extraction method identifiers
METHOD_HTTP = "http"
METHOD_SHOPIFY_JSON = "shopify_json"
METHOD_BROWSER = "browser"
METHOD_BROWSER_HIGH_ACCURACY = "browser_high_accuracy"

# Image URL fragments that mark a listing image as a placeholder
PLACEHOLDER_IMAGE_MARKERS = ("no-image", "noimage", "placeholder")
