"""
Category classification.

Modules:
    classifier - Ordered rule chain assigning one category per listing
    overrides  - Persisted manual overrides and learned keywords
"""

from .classifier import CategoryClassifier, ClassificationRule, filter_allowed
from .overrides import OverrideStore

__all__ = [
    'CategoryClassifier',
    'ClassificationRule',
    'OverrideStore',
    'filter_allowed',
]
