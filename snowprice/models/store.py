"""Store registry data models."""

from dataclasses import dataclass, field
from typing import Dict, List


@dataclass(frozen=True)
class StoreCategory:
    """A store page that lists one category of products."""
    url: str
    category: str


@dataclass
class StoreConfig:
    """
    Configuration for one store.

    Built-in stores come from config/stores.yaml; custom stores are added
    at runtime and persisted by the store registry.
    """
    id: str
    name: str
    base_url: str
    currency: str = "USD"
    country: str = "US"
    type: str = "custom"        # "builtin" or "custom"
    method: str = "http"        # Extraction method id used for refreshes
    categories: List[StoreCategory] = field(default_factory=list)
    params: Dict[str, str] = field(default_factory=dict)
    page_param: str = "page"
    max_pages: int = 15
    added_at: str = ""

    @property
    def is_builtin(self) -> bool:
        return self.type == "builtin"

    def listing_pages(self) -> List[StoreCategory]:
        """Pages to crawl: declared category pages, or the base URL alone."""
        if self.categories:
            return list(self.categories)
        return [StoreCategory(url=self.base_url, category="")]
