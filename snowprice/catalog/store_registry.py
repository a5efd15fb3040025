"""
Store Registry

Built-in stores come from config/stores.yaml and cannot be changed at
runtime. Custom stores are added through the catalog service and persisted
as one JSON document ({store_id: config}) under the data directory.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from ..common.config_loader import load_builtin_stores
from ..common.constants import METHOD_HTTP, METHOD_SHOPIFY_JSON
from ..common.json_utils import read_json, write_json_atomic
from ..errors import BuiltInStoreError, StoreNotFound
from ..models import StoreCategory, StoreConfig

logger = logging.getLogger(__name__)

# Hostname suffix -> currency, first match wins
_TLD_CURRENCIES = [
    ('.jp', 'JPY'),
    ('.ca', 'CAD'),
    ('.au', 'AUD'),
    ('.uk', 'GBP'),
    ('.eu', 'EUR'),
    ('.de', 'EUR'),
    ('.fr', 'EUR'),
    ('.tw', 'TWD'),
]

_CURRENCY_COUNTRIES = {
    'JPY': 'JP',
    'CAD': 'CA',
    'AUD': 'AU',
    'GBP': 'UK',
    'EUR': 'EU',
    'TWD': 'TW',
}


def detect_store_currency(hostname: str) -> str:
    """Guess a store's currency from its hostname."""
    hostname = hostname.lower()
    if 'base.shop' in hostname:
        return 'JPY'
    for suffix, currency in _TLD_CURRENCIES:
        if hostname.endswith(suffix):
            return currency
    return 'USD'


def store_from_url(url: str, name: Optional[str] = None) -> StoreConfig:
    """
    Derive a custom store configuration from a listing URL.

    Example:
        >>> store = store_from_url("https://www.snowshop.jp/collections/boards")
        >>> store.id, store.name, store.currency, store.method
        ('snowshop-jp', 'Snowshop', 'JPY', 'shopify_json')

    Raises:
        ValueError: If the URL has no hostname
    """
    parsed = urlparse(url)
    hostname = (parsed.hostname or '').lower()
    if not hostname:
        raise ValueError(f"Not a store URL: {url!r}")

    store_id = hostname.replace('.', '-')
    if store_id.startswith('www-'):
        store_id = store_id[len('www-'):]

    if not name:
        label = hostname[len('www.'):] if hostname.startswith('www.') else hostname
        label = label.split('.')[0]
        name = label[:1].upper() + label[1:]

    currency = detect_store_currency(hostname)
    method = METHOD_SHOPIFY_JSON if '/collections/' in parsed.path else METHOD_HTTP

    return StoreConfig(
        id=store_id,
        name=name,
        base_url=url,
        currency=currency,
        country=_CURRENCY_COUNTRIES.get(currency, 'US'),
        type='custom',
        method=method,
        added_at=datetime.now(timezone.utc).isoformat(),
    )


def store_to_dict(store: StoreConfig) -> Dict[str, Any]:
    return {
        'id': store.id,
        'name': store.name,
        'baseUrl': store.base_url,
        'currency': store.currency,
        'country': store.country,
        'type': store.type,
        'method': store.method,
        'categories': [{'url': c.url, 'category': c.category} for c in store.categories],
        'params': dict(store.params),
        'pageParam': store.page_param,
        'maxPages': store.max_pages,
        'addedAt': store.added_at,
    }


def store_from_dict(store_id: str, data: Dict[str, Any], store_type: str = 'custom') -> StoreConfig:
    """Build a StoreConfig from a persisted (camelCase) or YAML (snake_case) entry."""
    return StoreConfig(
        id=data.get('id', store_id),
        name=data.get('name', store_id),
        base_url=data.get('baseUrl') or data.get('base_url', ''),
        currency=data.get('currency', 'USD'),
        country=data.get('country', 'US'),
        type=store_type,
        method=data.get('method', METHOD_HTTP),
        categories=[
            StoreCategory(url=c['url'], category=c.get('category', ''))
            for c in data.get('categories', [])
        ],
        params={k: str(v) for k, v in (data.get('params') or {}).items()},
        page_param=data.get('pageParam') or data.get('page_param', 'page'),
        max_pages=int(data.get('maxPages') or data.get('max_pages', 15)),
        added_at=data.get('addedAt') or data.get('added_at', ''),
    )


class StoreRegistry:
    """
    Built-in plus custom stores.

    Usage:
        registry = StoreRegistry(data_dir / "custom_stores.json")
        registry.add(store_from_url("https://example.com/collections/boards"))
        for store in registry.all_stores():
            ...
    """

    def __init__(
        self,
        custom_path: str | Path,
        builtin: Optional[Dict[str, Dict[str, Any]]] = None,
    ):
        """
        Args:
            custom_path: JSON file holding custom stores
            builtin: Raw built-in store configs. If None, loads from config.
        """
        self.custom_path = Path(custom_path)
        raw_builtin = builtin if builtin is not None else load_builtin_stores()
        self._builtin = {
            store_id: store_from_dict(store_id, data, store_type='builtin')
            for store_id, data in raw_builtin.items()
        }
        raw_custom = read_json(self.custom_path, default={}) or {}
        self._custom = {
            store_id: store_from_dict(store_id, data)
            for store_id, data in raw_custom.items()
        }

    def all_stores(self) -> List[StoreConfig]:
        """Built-in stores first, then custom stores in insertion order."""
        return list(self._builtin.values()) + list(self._custom.values())

    def get(self, store_id: str) -> StoreConfig:
        """
        Raises:
            StoreNotFound: If the id is unknown
        """
        store = self._builtin.get(store_id) or self._custom.get(store_id)
        if store is None:
            raise StoreNotFound(f"Unknown store: {store_id}")
        return store

    def __contains__(self, store_id: str) -> bool:
        return store_id in self._builtin or store_id in self._custom

    def add(self, store: StoreConfig) -> StoreConfig:
        """
        Add or replace a custom store and persist the custom list.

        Raises:
            BuiltInStoreError: If the id belongs to a built-in store
        """
        if store.id in self._builtin:
            raise BuiltInStoreError(f"{store.id} is a built-in store")
        self._custom[store.id] = store
        self._save()
        logger.info("Registered store %s (%s, %s)", store.id, store.currency, store.method)
        return store

    def remove(self, store_id: str) -> bool:
        """
        Remove a custom store.

        Returns:
            True if the store existed and was removed

        Raises:
            BuiltInStoreError: If the id belongs to a built-in store
        """
        if store_id in self._builtin:
            raise BuiltInStoreError(f"{store_id} is a built-in store and cannot be removed")
        if store_id not in self._custom:
            return False
        del self._custom[store_id]
        self._save()
        logger.info("Removed store %s", store_id)
        return True

    def _save(self) -> None:
        write_json_atomic(
            self.custom_path,
            {store_id: store_to_dict(s) for store_id, s in self._custom.items()},
        )
