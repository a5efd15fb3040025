"""
Extraction result validation.

Modules:
    consensus       - Dual-pass consensus validation for store additions
    quality_tracker - Field coverage metrics and the refresh quality report
"""

from .consensus import (
    ConsensusValidator,
    difference_percent,
    select_secondary_method,
    status_for_difference,
)
from .quality_tracker import RefreshQualityTracker, is_valid_image, quality_metrics, valid_image_ratio

__all__ = [
    'ConsensusValidator',
    'RefreshQualityTracker',
    'difference_percent',
    'is_valid_image',
    'quality_metrics',
    'select_secondary_method',
    'status_for_difference',
    'valid_image_ratio',
]
