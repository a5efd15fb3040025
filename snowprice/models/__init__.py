"""
Data models for the price catalog.

This module contains pure data classes with no business logic.
"""

from .consensus import (
    ConsensusResult,
    ConsensusState,
    ConsensusStatus,
    PassSummary,
    PriceDiscrepancy,
    QualityMetrics,
)
from .listing import CanonicalProduct, CategoryHint, RawListing, StoreOffer
from .store import StoreCategory, StoreConfig

__all__ = [
    'CategoryHint',
    'RawListing',
    'StoreOffer',
    'CanonicalProduct',
    'StoreCategory',
    'StoreConfig',
    'ConsensusResult',
    'ConsensusState',
    'ConsensusStatus',
    'PassSummary',
    'PriceDiscrepancy',
    'QualityMetrics',
]
