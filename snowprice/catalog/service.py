"""
Catalog Service

Orchestrates the pipeline behind the management commands:

    adapters -> raw listings -> classifier -> merger -> allow-list -> snapshot

Mutating operations of the same kind never overlap (OperationGuard); a
refresh fans out over stores in a bounded thread pool and always rebuilds
the catalog from the full raw-listing set before swapping the snapshot
file in atomically.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from concurrent.futures import TimeoutError as FuturesTimeout
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

from ..classification import CategoryClassifier, OverrideStore, filter_allowed
from ..common.config_loader import Settings, load_allowed_categories, load_settings
from ..common.constants import EXCHANGE_RATES, METHOD_BROWSER, METHOD_HTTP, METHOD_SHOPIFY_JSON
from ..common.json_utils import read_json, write_json_atomic
from ..errors import (
    BuiltInStoreError,
    ConsensusFailed,
    NoListingsFound,
    ProductNotFound,
    SourceUnreachable,
    StoreNotFound,
)
from ..extraction.base import ExtractionAdapter
from ..extraction.registry import get_adapter
from ..matching.identity import canonical_key
from ..models import ConsensusResult, ConsensusStatus, RawListing, StoreCategory, StoreConfig
from ..validation.consensus import ConsensusValidator
from ..validation.quality_tracker import RefreshQualityTracker, valid_image_ratio
from .merger import CatalogMerger, MergeStats
from .progress import OP_ADD_STORE, OP_REFRESH, OperationGuard, ProgressSnapshot, ProgressTracker
from .snapshot import CatalogSnapshot, listing_from_dict, listing_to_dict, store_summary, utc_now
from .store_registry import StoreRegistry, store_from_dict, store_from_url, store_to_dict

logger = logging.getLogger(__name__)

SNAPSHOT_FILE = "products.json"
CUSTOM_STORES_FILE = "custom_stores.json"
OVERRIDES_FILE = "classifications.json"
PENDING_FILE = "pending_stores.json"

SAMPLE_SIZE = 5
MIN_VALID_IMAGE_RATIO = 0.5


@dataclass
class AddStoreResult:
    """A store that was added and merged into the catalog."""
    store: StoreConfig
    product_count: int
    consensus: Optional[ConsensusResult] = None
    sample_listings: List[RawListing] = field(default_factory=list)


@dataclass
class ConfirmationRequired:
    """The two extraction passes disagree; the store waits for confirm_store()."""
    store: StoreConfig
    consensus: ConsensusResult
    preview: List[RawListing] = field(default_factory=list)


@dataclass
class RefreshResult:
    snapshot: CatalogSnapshot
    refreshed: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)


class CatalogService:
    """
    Catalog operations over one data directory.

    Usage:
        service = CatalogService.from_settings(load_settings())
        service.refresh_all()
        outcome = service.add_store("https://shop.example.com/collections/snowboards")
        if isinstance(outcome, ConfirmationRequired):
            service.confirm_store(outcome.store.id)
    """

    def __init__(
        self,
        data_dir: str | Path,
        settings: Optional[Settings] = None,
        registry: Optional[StoreRegistry] = None,
        classifier: Optional[CategoryClassifier] = None,
        allowed_categories: Optional[Iterable[str]] = None,
        adapter_factory: Optional[Callable[..., ExtractionAdapter]] = None,
        validator: Optional[ConsensusValidator] = None,
    ):
        self.settings = settings or Settings(data_dir=Path(data_dir))
        self.data_dir = Path(data_dir)
        self.snapshot_path = self.data_dir / SNAPSHOT_FILE

        self.registry = registry or StoreRegistry(self.data_dir / CUSTOM_STORES_FILE)
        if classifier is None:
            classifier = CategoryClassifier()
            classifier.overrides = OverrideStore.load(
                self.data_dir / OVERRIDES_FILE, classifier.valid_categories
            )
        self.classifier = classifier
        self.allowed_categories = list(
            allowed_categories if allowed_categories is not None else load_allowed_categories()
        )
        self._adapter_factory = adapter_factory or self._default_adapter
        self.validator = validator or ConsensusValidator(
            adapter_factory=self._adapter_factory,
            secondary_timeout=self.settings.store_timeout,
        )

        self.guard = OperationGuard()
        self.progress = ProgressTracker()
        self.pending: Dict[str, ConfirmationRequired] = {}
        self.last_quality: Optional[RefreshQualityTracker] = None
        self._last_merge_stats = MergeStats()
        self._catalog_lock = threading.RLock()
        self.snapshot = CatalogSnapshot.load(self.snapshot_path)

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "CatalogService":
        settings = settings or load_settings()
        return cls(settings.data_dir, settings=settings)

    def _default_adapter(self, method: str) -> ExtractionAdapter:
        if method == METHOD_HTTP:
            return get_adapter(method, timeout=self.settings.request_timeout,
                               page_delay=self.settings.page_delay,
                               max_pages=self.settings.max_pages,
                               on_page=self.progress.page_started)
        if method == METHOD_SHOPIFY_JSON:
            return get_adapter(method, timeout=self.settings.request_timeout)
        return get_adapter(method)

    # ── Catalog build ─────────────────────────────────────────────────────────

    def rebuild(self, raw_listings: Iterable[RawListing]) -> CatalogSnapshot:
        """
        Recompute the catalog from the full raw-listing set.

        Nothing is published or saved. Listings of stores that are no longer
        registered are dropped.
        """
        known = {store.id for store in self.registry.all_stores()}
        raw_listings = list(raw_listings)
        current = [item for item in raw_listings if item.store in known]
        if len(current) < len(raw_listings):
            logger.debug("Dropping %d listings of unregistered stores", len(raw_listings) - len(current))
        classified = [self.classifier.classify_listing(item) for item in current]
        merger = CatalogMerger(
            classifier=self.classifier,
            price_ranges=self.settings.price_ranges,
        )
        products = filter_allowed(merger.merge(classified), self.allowed_categories)
        self._last_merge_stats = merger.stats
        return CatalogSnapshot(
            products=products,
            raw_products=classified,
            stores=[store_summary(s) for s in self.registry.all_stores()],
            exchange_rates=dict(EXCHANGE_RATES),
            last_updated=utc_now(),
        )

    def _publish(self, snapshot: CatalogSnapshot) -> CatalogSnapshot:
        with self._catalog_lock:
            snapshot.save(self.snapshot_path)
            self.snapshot = snapshot
        return snapshot

    # ── Refresh ───────────────────────────────────────────────────────────────

    def refresh_all(self, store_ids: Optional[List[str]] = None) -> RefreshResult:
        """
        Re-fetch stores and rebuild the catalog.

        Stores that fail keep their previous raw listings.

        Raises:
            OperationInProgress: If a refresh is already running
            StoreNotFound: If a requested store id is unknown
        """
        with self.guard.hold(OP_REFRESH):
            if store_ids:
                stores = [self.registry.get(store_id) for store_id in store_ids]
            else:
                stores = self.registry.all_stores()

            tracker = RefreshQualityTracker()
            self.progress.start(len(stores), f"Refreshing {len(stores)} stores")
            fresh: Dict[str, List[RawListing]] = {}
            failed: Dict[str, str] = {}

            workers = max(1, self.settings.max_workers)
            deadline = self.settings.store_timeout * max(1, math.ceil(len(stores) / workers))
            pool = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="refresh")
            try:
                futures = {pool.submit(self._fetch_store, store): store for store in stores}
                try:
                    for future in as_completed(futures, timeout=deadline):
                        store = futures[future]
                        try:
                            listings, elapsed = future.result()
                        except SourceUnreachable as e:
                            failed[store.id] = str(e)
                            tracker.record_failure(store.id, str(e))
                            self.progress.store_finished(store.name, 0)
                            continue
                        fresh[store.id] = listings
                        tracker.record_store(store.id, listings, elapsed)
                        self.progress.store_finished(store.name, len(listings))
                except FuturesTimeout:
                    for future, store in futures.items():
                        if not future.done() and store.id not in failed:
                            failed[store.id] = "timed out"
                            tracker.record_failure(store.id, "timed out")
            finally:
                pool.shutdown(wait=False, cancel_futures=True)

            for store_id, error in failed.items():
                logger.warning("%s: refresh failed, keeping previous listings (%s)", store_id, error)

            self.progress.update(message="Rebuilding catalog")
            with self._catalog_lock:
                kept = [item for item in self.snapshot.raw_products if item.store not in fresh]
                merged_raw = kept + [item for listings in fresh.values() for item in listings]
                try:
                    snapshot = self._publish(self.rebuild(merged_raw))
                except Exception:
                    self.progress.finish("Rebuild failed")
                    raise
                tracker.record_merge(self._last_merge_stats)
            self.last_quality = tracker
            self.progress.finish(
                f"Done: {snapshot.total_raw_products} listings, {snapshot.total_products} products"
            )
            return RefreshResult(snapshot=snapshot, refreshed=sorted(fresh), failed=failed)

    def _fetch_store(self, store: StoreConfig):
        self.progress.store_started(store.name)
        started = time.monotonic()
        listings = self._extract(store)
        return listings, time.monotonic() - started

    def _extract(self, store: StoreConfig) -> List[RawListing]:
        """
        Fetch a store with its configured method.

        Raises:
            SourceUnreachable: Wrapping any adapter failure
        """
        try:
            return self._adapter_factory(store.method).fetch(store)
        except SourceUnreachable:
            raise
        except Exception as e:
            raise SourceUnreachable(f"{store.id}: {type(e).__name__}: {e}") from e

    # ── Store management ──────────────────────────────────────────────────────

    def probe_primary(self, store: StoreConfig) -> tuple:
        """
        Find the method that extracts this store best.

        Shopify JSON for collection URLs, then plain HTTP, then the browser
        when HTTP finds nothing or mostly placeholder images.

        Returns:
            (method, listings)
        """
        if store.method == METHOD_SHOPIFY_JSON:
            try:
                listings = self._adapter_factory(METHOD_SHOPIFY_JSON).fetch(store)
            except SourceUnreachable as e:
                logger.info("%s: Shopify JSON unavailable (%s), trying HTTP", store.id, e)
                listings = []
            if listings:
                return METHOD_SHOPIFY_JSON, listings

        http_error: Optional[SourceUnreachable] = None
        try:
            listings = self._adapter_factory(METHOD_HTTP).fetch(store)
        except SourceUnreachable as e:
            http_error, listings = e, []

        if listings and valid_image_ratio(listings) >= MIN_VALID_IMAGE_RATIO:
            return METHOD_HTTP, listings

        reason = "no listings" if not listings else "mostly invalid images"
        logger.info("%s: HTTP extraction gave %s, trying browser rendering", store.id, reason)
        try:
            rendered = self._adapter_factory(METHOD_BROWSER).fetch(store)
        except SourceUnreachable as e:
            logger.warning("%s: browser extraction failed: %s", store.id, e)
            rendered = []

        if rendered and (not listings or valid_image_ratio(rendered) >= MIN_VALID_IMAGE_RATIO):
            return METHOD_BROWSER, rendered
        if listings:
            return METHOD_HTTP, listings
        if http_error is not None and not rendered:
            raise NoListingsFound(
                f"no listings could be extracted from this source ({http_error})"
            ) from http_error
        return METHOD_HTTP, []

    def add_store(
        self,
        url: str,
        name: Optional[str] = None,
        force_accept: bool = False,
        skip_validation: bool = False,
        categories: Optional[Iterable] = None,
    ):
        """
        Add a custom store from a listing URL.

        With categories, the store is crawled through those pages (each
        tagged with its category) instead of the URL alone.

        Returns:
            AddStoreResult, or ConfirmationRequired when the consensus check
            needs a human decision (unless force_accept)

        Raises:
            OperationInProgress: If another store addition is running
            NoListingsFound: If no method extracts any listing
            ConsensusFailed: If the secondary pass errored (unless skip_validation)
            ValueError: If a category page has no URL or an unknown category
        """
        pages = self._check_categories(categories)
        with self.guard.hold(OP_ADD_STORE):
            store = store_from_url(url, name)
            store.categories = pages
            method, listings = self.probe_primary(store)
            if not listings:
                raise NoListingsFound("no listings could be extracted from this source")
            store.method = method
            logger.info("%s: primary method %s found %d listings", store.id, method, len(listings))

            if skip_validation:
                return self._apply_store(store, listings)

            consensus = self.validator.validate(store, method, listings)
            if consensus.status == ConsensusStatus.ERROR:
                raise ConsensusFailed(store.id, consensus.errors)

            if consensus.requires_confirmation and not force_accept:
                pending = ConfirmationRequired(
                    store=store,
                    consensus=consensus,
                    preview=consensus.merged[:SAMPLE_SIZE],
                )
                self.pending[store.id] = pending
                self._save_pending()
                logger.warning("%s: extraction passes disagree (%.1f%%), confirmation required",
                               store.id, consensus.difference_percent)
                return pending

            return self._apply_store(store, consensus.merged, consensus)

    def confirm_store(self, store_id: str) -> AddStoreResult:
        """
        Apply a store addition that was waiting for confirmation.

        Pending additions are persisted, so a confirmation may come from a
        later process than the one that ran the validation.

        Raises:
            StoreNotFound: If nothing is pending for the store
        """
        with self.guard.hold(OP_ADD_STORE):
            pending = self.pending.pop(store_id, None)
            if pending is not None:
                self._save_pending(drop=store_id)
                return self._apply_store(pending.store, pending.consensus.merged, pending.consensus)

            stored = read_json(self.data_dir / PENDING_FILE, default={}) or {}
            entry = stored.pop(store_id, None)
            if entry is None:
                raise StoreNotFound(f"No pending confirmation for {store_id}")
            write_json_atomic(self.data_dir / PENDING_FILE, stored)
            store = store_from_dict(store_id, entry['store'])
            listings = [listing_from_dict(item) for item in entry.get('listings', [])]
            return self._apply_store(store, listings)

    def _save_pending(self, drop: Optional[str] = None) -> None:
        stored = read_json(self.data_dir / PENDING_FILE, default={}) or {}
        if drop is not None:
            stored.pop(drop, None)
        for store_id, pending in self.pending.items():
            stored[store_id] = {
                'store': store_to_dict(pending.store),
                'status': pending.consensus.status.value,
                'differencePercent': round(pending.consensus.difference_percent, 1),
                'listings': [listing_to_dict(item) for item in pending.consensus.merged],
            }
        write_json_atomic(self.data_dir / PENDING_FILE, stored)

    def _apply_store(
        self,
        store: StoreConfig,
        listings: List[RawListing],
        consensus: Optional[ConsensusResult] = None,
    ) -> AddStoreResult:
        with self._catalog_lock:
            self.registry.add(store)
            kept = [item for item in self.snapshot.raw_products if item.store != store.id]
            self._publish(self.rebuild(kept + list(listings)))
        logger.info("Added store %s with %d listings", store.id, len(listings))
        return AddStoreResult(
            store=store,
            product_count=len(listings),
            consensus=consensus,
            sample_listings=list(listings[:SAMPLE_SIZE]),
        )

    def remove_store(self, store_id: str) -> bool:
        """
        Remove a custom store and its listings.

        Returns:
            False if the store did not exist

        Raises:
            BuiltInStoreError: If the store is built in
        """
        with self._catalog_lock:
            if not self.registry.remove(store_id):
                return False
            self.pending.pop(store_id, None)
            kept = [item for item in self.snapshot.raw_products if item.store != store_id]
            self._publish(self.rebuild(kept))
        return True

    def store_categories(self, store_id: str) -> List[StoreCategory]:
        """
        Raises:
            StoreNotFound: If the store is unknown
        """
        return list(self.registry.get(store_id).categories)

    def update_store_categories(self, store_id: str, categories: Iterable) -> AddStoreResult:
        """
        Replace a custom store's category pages and re-fetch it.

        An empty list goes back to crawling the store's base URL. The new
        pages are fetched with the store's current method before anything
        is saved, so a failing fetch leaves the store as it was.

        Raises:
            ValueError: If a category page has no URL or an unknown category
            StoreNotFound: If the store is unknown
            BuiltInStoreError: If the store is built in
            OperationInProgress: If a store addition is running
            SourceUnreachable: If the new pages cannot be fetched
            NoListingsFound: If the new pages list nothing
        """
        pages = self._check_categories(categories)
        with self.guard.hold(OP_ADD_STORE):
            current = self.registry.get(store_id)
            if current.is_builtin:
                raise BuiltInStoreError(f"{store_id} is built in; its pages come from config")
            store = replace(current, categories=pages)
            listings = self._extract(store)
            if not listings:
                raise NoListingsFound(f"{store_id}: no listings on the new category pages")
            logger.info("%s: %d category pages, %d listings", store_id, len(pages), len(listings))
            return self._apply_store(store, listings)

    def _check_categories(self, categories: Optional[Iterable]) -> List[StoreCategory]:
        """
        Accepts StoreCategory items or {"url": ..., "category": ...} dicts.

        Raises:
            ValueError: If a page has no URL or an unknown category
        """
        pages: List[StoreCategory] = []
        for entry in categories or []:
            if not isinstance(entry, StoreCategory):
                entry = StoreCategory(url=entry.get('url', ''), category=entry.get('category', ''))
            if not entry.url:
                raise ValueError("Category page needs a URL")
            if entry.category not in self.classifier.valid_categories:
                raise ValueError(
                    f"Unknown category {entry.category!r}. "
                    f"Valid: {', '.join(self.classifier.valid_categories)}"
                )
            pages.append(entry)
        return pages

    # ── Classification ────────────────────────────────────────────────────────

    def classify_product(self, key: str, category: str) -> CatalogSnapshot:
        """
        Pin a canonical product to a category.

        The published product is updated in place; a product that was
        filtered out of the catalog comes back through a rebuild.

        Raises:
            ValueError: If the category is unknown
            ProductNotFound: If no raw listing has this key
        """
        with self._catalog_lock:
            return self._classify_product(key, category)

    def _classify_product(self, key: str, category: str) -> CatalogSnapshot:
        product = self.snapshot.find_product(key)
        if product is None and not any(
            canonical_key(item.brand, item.name) == key for item in self.snapshot.raw_products
        ):
            raise ProductNotFound(f"No listings with key {key!r}")

        overrides = self.classifier.overrides
        overrides.set_manual(key, category)
        overrides.save()

        if product is not None and category in self.allowed_categories:
            product.categories = [category]
            for offer in product.offers:
                offer.categories = [category]
            self.snapshot.raw_products = [
                self.classifier.classify_listing(item)
                if canonical_key(item.brand, item.name) == key else item
                for item in self.snapshot.raw_products
            ]
            self.snapshot.last_updated = utc_now()
            return self._publish(self.snapshot)

        return self._publish(self.rebuild(self.snapshot.raw_products))

    def learn_keyword(self, category: str, keyword: str) -> bool:
        """
        Teach the classifier a title keyword for a category.

        Returns:
            True if the keyword was new
        """
        overrides = self.classifier.overrides
        added = overrides.add_learned_keyword(category, keyword)
        if added:
            overrides.save()
        return added

    def get_progress(self) -> ProgressSnapshot:
        return self.progress.snapshot()
