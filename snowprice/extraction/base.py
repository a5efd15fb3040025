"""
Extraction adapter contract.

An adapter turns one store into raw listings using one extraction method.
Adapters must not raise for a single malformed card or page; they raise
SourceUnreachable only when the source could not be reached at all, and
return [] when the source has no matching items.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List

from ..models import RawListing, StoreConfig

# Browser-like request headers shared by the HTTP-based adapters
DEFAULT_HEADERS = {
    "User-Agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    ),
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5,ja;q=0.3",
}


class ExtractionAdapter(ABC):
    """Base class for extraction methods."""

    #: Method id recorded in listing metadata and store configs
    method: str = ""
    #: True when the adapter executes page scripts (headless browser)
    requires_rendering: bool = False

    @abstractmethod
    def fetch(self, store: StoreConfig) -> List[RawListing]:
        """
        Extract all listings of a store.

        Raises:
            SourceUnreachable: If no page of the store could be fetched
        """
