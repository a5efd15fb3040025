"""Extraction method registry."""

from __future__ import annotations

from typing import Callable, Dict

from ..common.constants import (
    METHOD_BROWSER,
    METHOD_BROWSER_HIGH_ACCURACY,
    METHOD_HTTP,
    METHOD_SHOPIFY_JSON,
)
from .base import ExtractionAdapter
from .browser_adapter import BrowserListingAdapter
from .http_adapter import HttpListingAdapter
from .shopify_adapter import ShopifyJsonAdapter

ADAPTER_FACTORIES: Dict[str, Callable[..., ExtractionAdapter]] = {
    METHOD_HTTP: HttpListingAdapter,
    METHOD_SHOPIFY_JSON: ShopifyJsonAdapter,
    METHOD_BROWSER: BrowserListingAdapter,
    METHOD_BROWSER_HIGH_ACCURACY: lambda **kwargs: BrowserListingAdapter(high_accuracy=True, **kwargs),
}

RENDERING_METHODS = frozenset({METHOD_BROWSER, METHOD_BROWSER_HIGH_ACCURACY})


def get_adapter(method: str, **kwargs) -> ExtractionAdapter:
    """
    Create the adapter for an extraction method.

    Raises:
        ValueError: If the method is unknown
    """
    try:
        factory = ADAPTER_FACTORIES[method]
    except KeyError:
        raise ValueError(
            f"Unknown extraction method {method!r}. Valid: {', '.join(sorted(ADAPTER_FACTORIES))}"
        ) from None
    return factory(**kwargs)


def requires_rendering(method: str) -> bool:
    """True when the method executes page scripts in a browser."""
    return method in RENDERING_METHODS
