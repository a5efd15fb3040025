"""
Manual Classification Overrides

Persistent operator input for the classifier:
  - manual:           canonical key -> category id (highest priority)
  - learned_keywords: category id -> extra title keywords (additive)

Stored as one JSON document; the classifier only reads it.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from ..common.json_utils import read_json, write_json_atomic

logger = logging.getLogger(__name__)


class OverrideStore:
    """
    Manual category overrides and learned keywords.

    Usage::

        store = OverrideStore.load("data/classifications.json", valid_categories)
        store.set_manual("burton-custom", "snowboard")
        store.add_learned_keyword("binding", "cartel")
        store.save()
    """

    def __init__(
        self,
        path: Optional[str | Path] = None,
        valid_categories: Optional[Iterable[str]] = None,
        manual: Optional[Dict[str, str]] = None,
        learned_keywords: Optional[Dict[str, List[str]]] = None,
    ) -> None:
        self.path = Path(path) if path else None
        self.valid_categories = set(valid_categories) if valid_categories else None
        self.manual: Dict[str, str] = dict(manual or {})
        self.learned_keywords: Dict[str, List[str]] = {
            category: [k.lower() for k in keywords]
            for category, keywords in (learned_keywords or {}).items()
        }

    @classmethod
    def load(
        cls,
        path: str | Path,
        valid_categories: Optional[Iterable[str]] = None,
    ) -> "OverrideStore":
        """Load overrides from disk; a missing or unreadable file gives an empty store."""
        data = read_json(path, default={}) or {}
        return cls(
            path=path,
            valid_categories=valid_categories,
            manual=data.get("manual", {}),
            learned_keywords=data.get("learned_keywords", {}),
        )

    def _check_category(self, category: str) -> None:
        if self.valid_categories is not None and category not in self.valid_categories:
            raise ValueError(
                f"Unknown category {category!r}. Valid: {', '.join(sorted(self.valid_categories))}"
            )

    def manual_category(self, key: str) -> Optional[str]:
        return self.manual.get(key)

    def set_manual(self, key: str, category: str) -> None:
        """Pin a canonical product to a category."""
        self._check_category(category)
        self.manual[key] = category
        logger.info("Manual classification: %s -> %s", key, category)

    def add_learned_keyword(self, category: str, keyword: str) -> bool:
        """
        Add a title keyword for a category.

        Returns:
            True if the keyword was new
        """
        self._check_category(category)
        keyword = keyword.strip().lower()
        if not keyword:
            raise ValueError("Keyword must not be empty")
        keywords = self.learned_keywords.setdefault(category, [])
        if keyword in keywords:
            return False
        keywords.append(keyword)
        logger.info("Learned keyword for %s: %r", category, keyword)
        return True

    def save(self) -> None:
        """Write the whole document atomically."""
        if self.path is None:
            raise ValueError("OverrideStore has no path to save to")
        write_json_atomic(self.path, {
            "manual": self.manual,
            "learned_keywords": self.learned_keywords,
        })
