"""
Consensus Validator

Runs a second, independent extraction method against a store that is being
added and decides whether the two result sets agree well enough to merge
automatically.

    INIT -> PRIMARY_FETCHED -> SECONDARY_FETCHING -> RECONCILED
         -> AUTO_MERGED | WARN_MERGED | NEEDS_CONFIRMATION | SKIPPED | ERRORED

Listings are matched by product URL. The merged set is the union of both
passes; the primary listing wins on every field it has, the secondary only
fills gaps (missing price, image, unknown brand). The count difference
between the passes decides the outcome:

    difference < 10%   auto_merged
    difference < 30%   merged_with_warning
    otherwise          requires_confirmation (never applied automatically)

Price disagreements on shared URLs and poor field coverage only add
warnings; they never change the status.
"""

from __future__ import annotations

import logging
import re
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeout
from dataclasses import replace
from typing import Callable, Dict, List, Optional

import requests

from ..common.constants import (
    METHOD_BROWSER,
    METHOD_BROWSER_HIGH_ACCURACY,
    METHOD_HTTP,
    METHOD_SHOPIFY_JSON,
    UNKNOWN_BRAND,
)
from ..errors import SourceUnreachable
from ..extraction.base import ExtractionAdapter
from ..extraction.registry import get_adapter, requires_rendering
from ..models import (
    ConsensusResult,
    ConsensusState,
    ConsensusStatus,
    PassSummary,
    PriceDiscrepancy,
    RawListing,
    StoreConfig,
)
from ..models.consensus import TERMINAL_STATES
from .quality_tracker import quality_metrics

logger = logging.getLogger(__name__)

SECONDARY_METHODS = {
    METHOD_BROWSER: METHOD_BROWSER_HIGH_ACCURACY,
    METHOD_HTTP: METHOD_BROWSER,
    METHOD_SHOPIFY_JSON: METHOD_HTTP,
    METHOD_BROWSER_HIGH_ACCURACY: METHOD_HTTP,
}

AUTO_MERGE_BELOW = 10.0
WARN_MERGE_BELOW = 30.0
PRICE_SPOT_CHECKS = 20
PRICE_TOLERANCE_PERCENT = 5.0
MIN_VALID_IMAGE_PERCENT = 50.0
MIN_PRICE_PERCENT = 80.0

# Fields the secondary pass may fill when the primary left them empty
_BACKFILL_FIELDS = (
    'store_name', 'name', 'sale_price', 'original_price',
    'price_reference', 'discount_percent', 'image_url',
)


def select_secondary_method(primary_method: str) -> str:
    """
    Method used to cross-check a primary method; never the same method.

    Raises:
        ValueError: If the primary method is unknown
    """
    try:
        return SECONDARY_METHODS[primary_method]
    except KeyError:
        raise ValueError(f"No secondary method for {primary_method!r}") from None


def difference_percent(count_a: int, count_b: int) -> float:
    """
    Relative difference of two counts, as a percentage of the larger.

    Unrounded: the status thresholds compare against the exact value.

    Example:
        >>> difference_percent(100, 91)
        9.0
        >>> difference_percent(0, 0)
        0.0
    """
    high = max(count_a, count_b)
    if high == 0:
        return 0.0
    return (high - min(count_a, count_b)) * 100 / high


def status_for_difference(diff: float) -> ConsensusStatus:
    if diff < AUTO_MERGE_BELOW:
        return ConsensusStatus.AUTO_MERGED
    if diff < WARN_MERGE_BELOW:
        return ConsensusStatus.MERGED_WITH_WARNING
    return ConsensusStatus.REQUIRES_CONFIRMATION


def _is_empty(value) -> bool:
    return value is None or value == ""


def _without_brand(name: str, brand: str) -> str:
    """Drop the first occurrence of a brand from a title kept whole under the unknown brand."""
    stripped = " ".join(re.sub(re.escape(brand), "", name, count=1, flags=re.IGNORECASE).split())
    return stripped or name


def backfill(primary: RawListing, secondary: RawListing) -> RawListing:
    """
    Fill the primary listing's empty fields from the secondary listing.

    An unknown primary brand takes the secondary's brand; the primary name
    is kept with that brand text removed.
    """
    changes = {
        name: getattr(secondary, name)
        for name in _BACKFILL_FIELDS
        if _is_empty(getattr(primary, name)) and not _is_empty(getattr(secondary, name))
    }
    if primary.brand in ("", UNKNOWN_BRAND) and secondary.brand not in ("", UNKNOWN_BRAND):
        changes['brand'] = secondary.brand
        if primary.name:
            changes['name'] = _without_brand(primary.name, secondary.brand)
    return replace(primary, **changes) if changes else primary


def _by_url(listings: List[RawListing]) -> Dict[str, RawListing]:
    """First listing per product URL, in pass order."""
    indexed: Dict[str, RawListing] = {}
    for listing in listings:
        indexed.setdefault(listing.product_url, listing)
    return indexed


class ConsensusValidator:
    """
    Dual-pass validation for store additions.

    Usage::

        validator = ConsensusValidator(secondary_timeout=600)
        result = validator.validate(store, "http", primary_listings)
        if result.passed:
            apply(result.merged)
    """

    def __init__(
        self,
        adapter_factory: Callable[..., ExtractionAdapter] = get_adapter,
        secondary_timeout: Optional[float] = None,
        primary_timeout: Optional[float] = None,
    ) -> None:
        """
        Args:
            adapter_factory: method id -> adapter (get_adapter by default)
            secondary_timeout: Seconds to wait for the secondary pass; a
                timed-out secondary counts as a pass with zero listings
            primary_timeout: Seconds to wait for the primary pass in run()
        """
        self._adapter_factory = adapter_factory
        self.secondary_timeout = secondary_timeout
        self.primary_timeout = primary_timeout

    # ── Public API ────────────────────────────────────────────────────────────

    def validate(
        self,
        store: StoreConfig,
        primary_method: str,
        primary_listings: List[RawListing],
    ) -> ConsensusResult:
        """Cross-check already fetched primary listings with a secondary pass."""
        secondary_method = select_secondary_method(primary_method)
        result = ConsensusResult(
            store_id=store.id,
            primary=PassSummary(primary_method, list(primary_listings)),
            secondary=PassSummary(secondary_method),
        )
        result.advance(ConsensusState.PRIMARY_FETCHED)
        result.advance(ConsensusState.SECONDARY_FETCHING)

        pool = ThreadPoolExecutor(max_workers=1, thread_name_prefix="consensus")
        try:
            future = pool.submit(self._fetch, secondary_method, store)
            return self._collect_secondary(result, future)
        finally:
            pool.shutdown(wait=False, cancel_futures=True)

    def run(self, store: StoreConfig, primary_method: str) -> ConsensusResult:
        """
        Run primary and secondary passes concurrently and reconcile them.

        Raises:
            SourceUnreachable: If the primary pass fails
        """
        secondary_method = select_secondary_method(primary_method)
        result = ConsensusResult(
            store_id=store.id,
            primary=PassSummary(primary_method),
            secondary=PassSummary(secondary_method),
        )

        pool = ThreadPoolExecutor(max_workers=2, thread_name_prefix="consensus")
        try:
            primary_future = pool.submit(self._fetch, primary_method, store)
            secondary_future = pool.submit(self._fetch, secondary_method, store)

            try:
                result.primary.listings = primary_future.result(timeout=self.primary_timeout)
            except SourceUnreachable:
                raise
            except FuturesTimeout as e:
                raise SourceUnreachable(f"{store.id}: {primary_method} pass timed out") from e
            except Exception as e:
                raise SourceUnreachable(f"{store.id}: {primary_method} pass failed: {e}") from e

            result.advance(ConsensusState.PRIMARY_FETCHED)
            result.advance(ConsensusState.SECONDARY_FETCHING)
            return self._collect_secondary(result, secondary_future)
        finally:
            pool.shutdown(wait=False, cancel_futures=True)

    def reconcile(self, result: ConsensusResult) -> ConsensusResult:
        """Diff both passes by URL, merge them and decide the status."""
        result.advance(ConsensusState.RECONCILED)
        primary, secondary = result.primary, result.secondary

        if (
            requires_rendering(primary.method)
            and not requires_rendering(secondary.method)
            and secondary.count == 0
            and primary.count > 0
        ):
            # Plain HTTP cannot see a script-rendered grid: nothing to compare
            result.merged = list(_by_url(primary.listings).values())
            result.merged_from_primary = len(result.merged)
            result.only_in_primary = [item.product_url for item in result.merged]
            result.warnings.append(
                f"{secondary.method} pass found no listings on a rendered page; "
                f"using {primary.method} results only"
            )
            self._check_quality(result)
            return self._finish(result, ConsensusStatus.SKIPPED_SINGLE_SOURCE)

        primary_by_url = _by_url(primary.listings)
        secondary_by_url = _by_url(secondary.listings)

        merged: List[RawListing] = []
        for url, listing in primary_by_url.items():
            other = secondary_by_url.get(url)
            if other is None:
                result.only_in_primary.append(url)
                merged.append(listing)
            else:
                result.in_both.append(url)
                merged.append(backfill(listing, other))
        for url, listing in secondary_by_url.items():
            if url not in primary_by_url:
                result.only_in_secondary.append(url)
                merged.append(listing)

        result.merged = merged
        result.merged_from_primary = len(primary_by_url)
        result.merged_from_secondary = len(result.only_in_secondary)
        result.difference_percent = difference_percent(primary.count, secondary.count)

        status = status_for_difference(result.difference_percent)
        if status != ConsensusStatus.AUTO_MERGED:
            result.warnings.append(
                f"{primary.method} found {primary.count} listings, {secondary.method} found "
                f"{secondary.count} ({result.difference_percent:.1f}% difference)"
            )

        self._check_prices(result, primary_by_url, secondary_by_url)
        self._check_quality(result)
        return self._finish(result, status)

    # ── Helpers ───────────────────────────────────────────────────────────────

    def _fetch(self, method: str, store: StoreConfig) -> List[RawListing]:
        return self._adapter_factory(method).fetch(store)

    def _collect_secondary(self, result: ConsensusResult, future) -> ConsensusResult:
        method = result.secondary.method
        try:
            result.secondary.listings = future.result(timeout=self.secondary_timeout)
        except (FuturesTimeout, requests.Timeout):
            logger.warning("%s: %s pass timed out, treating as empty", result.store_id, method)
            result.warnings.append(f"{method} pass timed out; treated as zero listings")
            result.secondary.listings = []
        except Exception as e:
            logger.error("%s: %s pass failed: %s", result.store_id, method, e)
            result.errors.append(f"{method} pass failed: {type(e).__name__}: {e}")
            return self._finish(result, ConsensusStatus.ERROR)
        return self.reconcile(result)

    @staticmethod
    def _check_prices(
        result: ConsensusResult,
        primary_by_url: Dict[str, RawListing],
        secondary_by_url: Dict[str, RawListing],
    ) -> None:
        checked = 0
        for url in result.in_both[:PRICE_SPOT_CHECKS]:
            primary_price = primary_by_url[url].sale_price
            secondary_price = secondary_by_url[url].sale_price
            if not primary_price or secondary_price is None:
                continue
            checked += 1
            diff = abs(primary_price - secondary_price) / primary_price * 100
            if diff > PRICE_TOLERANCE_PERCENT:
                result.price_discrepancies.append(
                    PriceDiscrepancy(url, primary_price, secondary_price, round(diff, 1))
                )
        if result.price_discrepancies:
            result.warnings.append(
                f"{len(result.price_discrepancies)} of {checked} shared listings differ "
                f"in price by more than {PRICE_TOLERANCE_PERCENT:.0f}%"
            )

    @staticmethod
    def _check_quality(result: ConsensusResult) -> None:
        if not result.merged:
            return
        metrics = quality_metrics(result.merged)
        result.quality_metrics = metrics
        if metrics.valid_image_percent < MIN_VALID_IMAGE_PERCENT:
            result.warnings.append(f"only {metrics.valid_image_percent:.1f}% of listings have a valid image")
        if metrics.price_percent < MIN_PRICE_PERCENT:
            result.warnings.append(f"only {metrics.price_percent:.1f}% of listings have a price")

    @staticmethod
    def _finish(result: ConsensusResult, status: ConsensusStatus) -> ConsensusResult:
        result.status = status
        result.advance(TERMINAL_STATES[status])
        logger.info(
            "%s: consensus %s (%s=%d, %s=%d, merged=%d, diff=%.1f%%)",
            result.store_id, status.value,
            result.primary.method, result.primary.count,
            result.secondary.method, result.secondary.count,
            len(result.merged), result.difference_percent,
        )
        return result
