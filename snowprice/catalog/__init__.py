"""
Catalog building and management.

Modules:
    merger         - Raw listings -> canonical products
    snapshot       - Published catalog document (load / atomic save)
    store_registry - Built-in and custom stores
    progress       - Operation guards and refresh progress
    service        - Orchestration of refresh, store additions and overrides
"""

from .merger import CatalogMerger, MergeStats, dedupe_listings, flatten_offers
from .progress import OperationGuard, ProgressSnapshot, ProgressTracker
from .service import AddStoreResult, CatalogService, ConfirmationRequired, RefreshResult
from .snapshot import CatalogSnapshot
from .store_registry import StoreRegistry, store_from_url

__all__ = [
    'CatalogMerger',
    'MergeStats',
    'dedupe_listings',
    'flatten_offers',
    'OperationGuard',
    'ProgressSnapshot',
    'ProgressTracker',
    'AddStoreResult',
    'CatalogService',
    'ConfirmationRequired',
    'RefreshResult',
    'CatalogSnapshot',
    'StoreRegistry',
    'store_from_url',
]
