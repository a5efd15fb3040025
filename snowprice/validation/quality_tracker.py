"""
RefreshQualityTracker

Tracks data quality across one catalog refresh and prints a summary:
per-store listing counts and failures, field coverage of the listings,
out-of-range drops and identity-collision suspects from the merge.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional

from ..common.constants import PLACEHOLDER_IMAGE_MARKERS, UNKNOWN_BRAND
from ..models import QualityMetrics, RawListing

if TYPE_CHECKING:
    from ..catalog.merger import MergeStats


def is_valid_image(url: str) -> bool:
    """Non-empty, not a placeholder and not a GIF (spacers, loaders)."""
    if not url:
        return False
    lowered = url.lower()
    if any(marker in lowered for marker in PLACEHOLDER_IMAGE_MARKERS):
        return False
    return not lowered.split('?')[0].endswith('.gif')


def valid_image_ratio(listings: List[RawListing]) -> float:
    if not listings:
        return 0.0
    return sum(1 for item in listings if is_valid_image(item.image_url)) / len(listings)


def quality_metrics(listings: Iterable[RawListing]) -> QualityMetrics:
    """Percentages of listings with a valid image, a price and a known brand."""
    listings = list(listings)
    if not listings:
        return QualityMetrics()
    total = len(listings)
    with_image = sum(1 for item in listings if is_valid_image(item.image_url))
    with_price = sum(1 for item in listings if item.sale_price is not None or item.original_price is not None)
    with_brand = sum(1 for item in listings if item.brand and item.brand != UNKNOWN_BRAND)
    return QualityMetrics(
        valid_image_percent=round(with_image / total * 100, 1),
        price_percent=round(with_price / total * 100, 1),
        brand_percent=round(with_brand / total * 100, 1),
    )


@dataclass
class StoreRun:
    store_id: str
    listings: int = 0
    error: Optional[str] = None
    elapsed_seconds: float = 0.0


class RefreshQualityTracker:
    """
    Aggregate quality tracker for a catalog refresh.

    Usage::

        tracker = RefreshQualityTracker()
        # per store:
        tracker.record_store("murasaki", listings, elapsed_seconds=12.5)
        tracker.record_failure("northshore", "SourceUnreachable: timeout")
        # after merge:
        tracker.record_merge(merger.stats)
        tracker.print_final_report()
    """

    def __init__(self) -> None:
        self.stores: Dict[str, StoreRun] = {}
        self._listings: List[RawListing] = []
        self.dropped_out_of_range: int = 0
        self.duplicates: int = 0
        self.products: int = 0
        self.collision_suspects: List[str] = []

    # ── Public API ────────────────────────────────────────────────────────────

    def record_store(self, store_id: str, listings: List[RawListing], elapsed_seconds: float = 0.0) -> None:
        """Record a successful store extraction."""
        self.stores[store_id] = StoreRun(store_id, len(listings), None, elapsed_seconds)
        self._listings.extend(listings)

    def record_failure(self, store_id: str, error: str, elapsed_seconds: float = 0.0) -> None:
        """Record a store whose extraction failed (previous listings are kept)."""
        self.stores[store_id] = StoreRun(store_id, 0, error, elapsed_seconds)

    def record_merge(self, stats: "MergeStats") -> None:
        self.dropped_out_of_range = stats.dropped_out_of_range
        self.duplicates = stats.duplicates
        self.products = stats.products
        self.collision_suspects = list(stats.collision_suspects)

    @property
    def failed_stores(self) -> List[str]:
        return [run.store_id for run in self.stores.values() if run.error]

    @property
    def total_listings(self) -> int:
        return len(self._listings)

    def metrics(self) -> QualityMetrics:
        return quality_metrics(self._listings)

    def has_critical_failures(self, threshold_pct: float = 50.0) -> bool:
        """Return True if more than threshold_pct of the stores failed."""
        if not self.stores:
            return False
        return len(self.failed_stores) / len(self.stores) * 100 > threshold_pct

    def print_final_report(self) -> None:
        """Print a quality report table at the end of the refresh."""
        if not self.stores:
            print("\n[Quality] No stores processed.")
            return

        gate = "PASS" if not self.has_critical_failures() else "FAIL"
        metrics = self.metrics()

        print("\n" + "=" * 60)
        print(f"Refresh Quality Report  [{gate}]")
        print("=" * 60)
        for run in self.stores.values():
            status = f"FAILED ({run.error})" if run.error else f"{run.listings:>6} listings"
            print(f"  {run.store_id:<30} {status}  [{run.elapsed_seconds:.1f}s]")

        print(f"\n  Fetched listings:    {self.total_listings}")
        print(f"  With valid image:    {metrics.valid_image_percent:.1f}%")
        print(f"  With price:          {metrics.price_percent:.1f}%")
        print(f"  With known brand:    {metrics.brand_percent:.1f}%")
        print(f"\n  Canonical products:  {self.products}")
        print(f"  Duplicates removed:  {self.duplicates}")
        print(f"  Out-of-range drops:  {self.dropped_out_of_range}")

        if self.collision_suspects:
            print(
                f"  Collision suspects:  {len(self.collision_suspects)} "
                f"(e.g. {self.collision_suspects[0]!r})"
            )

        print("\n  Gate (>50% failed stores = FAIL):", gate)
        print("=" * 60)
