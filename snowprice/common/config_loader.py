"""
Configuration Loader

Loads YAML configuration files for known brands, categories, built-in
stores and runtime settings. Environment variables override the runtime
settings that differ between deployments (data directory, worker count).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .constants import DEFAULT_PRICE_RANGE


def _get_config_dir() -> Path:
    """Get the config directory path."""
    override = os.environ.get("SNOWPRICE_CONFIG_DIR")
    if override:
        return Path(override)

    # Try relative to this file first
    module_dir = Path(__file__).parent.parent.parent
    config_dir = module_dir / 'config'

    if config_dir.exists():
        return config_dir

    # Try current working directory
    cwd_config = Path.cwd() / 'config'
    if cwd_config.exists():
        return cwd_config

    raise FileNotFoundError(
        f"Config directory not found. Tried: {config_dir}, {cwd_config}"
    )


def load_config(filename: str) -> Dict[str, Any]:
    """
    Load a YAML configuration file.

    Args:
        filename: Name of the config file (e.g., 'categories.yaml')

    Returns:
        Parsed YAML content as dictionary (empty dict for an empty file)

    Raises:
        FileNotFoundError: If config file doesn't exist
    """
    config_path = _get_config_dir() / filename

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, 'r', encoding='utf-8') as f:
        return yaml.safe_load(f) or {}


def load_known_brands() -> List[str]:
    """
    Load the ordered brand list used for title matching.

    Order is significant: the first brand contained in a title wins, so
    multi-word brands ("Lib Tech") are listed before any shorter brand
    they contain.

    Returns:
        List of brand names (canonical capitalization), de-duplicated
        case-insensitively while keeping the first occurrence
    """
    config = load_config('known_brands.yaml')
    seen = set()
    brands = []
    for brand in config.get('brands', []):
        brand = str(brand).strip()
        if brand and brand.lower() not in seen:
            seen.add(brand.lower())
            brands.append(brand)
    return brands


def load_category_config() -> List[Dict[str, Any]]:
    """
    Load category definitions in precedence order (specific before generic).

    Returns:
        List of dicts with keys: id, keywords, exclude_keywords,
        breadcrumb_keywords, url_patterns

    Example:
        [
            {'id': 'binding', 'keywords': ['binding'], ...},
            {'id': 'snowboard', 'keywords': ['snowboard'], ...},
        ]
    """
    config = load_config('categories.yaml')
    categories = []
    for entry in config.get('categories', []):
        categories.append({
            'id': entry['id'],
            'keywords': [k.lower() for k in entry.get('keywords', [])],
            'exclude_keywords': [k.lower() for k in entry.get('exclude_keywords', [])],
            'breadcrumb_keywords': [k.lower() for k in entry.get('breadcrumb_keywords', [])],
            'url_patterns': [k.lower() for k in entry.get('url_patterns', [])],
        })
    return categories


def load_allowed_categories() -> List[str]:
    """Load the allow-list of categories published in the catalog."""
    config = load_config('categories.yaml')
    return list(config.get('allowed', []))


def load_type_mapping() -> Dict[str, str]:
    """
    Load the platform-native product type to category mapping.

    Returns:
        Dictionary mapping lowercase product type to category id

    Example:
        {'snowboards': 'snowboard', 'snowboard bindings': 'binding'}
    """
    config = load_config('categories.yaml')
    return {str(k).lower(): v for k, v in config.get('type_mapping', {}).items()}


def load_builtin_stores() -> Dict[str, Dict[str, Any]]:
    """
    Load built-in store definitions.

    Returns:
        Dictionary mapping store id to its raw config dict
    """
    config = load_config('stores.yaml')
    return config.get('stores', {})


@dataclass
class Settings:
    """Runtime settings for refreshes and store additions."""

    data_dir: Path = Path("data")
    max_workers: int = 4
    request_timeout: float = 30.0
    store_timeout: float = 600.0
    page_delay: float = 1.5
    max_pages: int = 15
    price_ranges: Dict[str, Dict[str, float]] = field(default_factory=dict)

    def price_range(self, currency: str) -> Dict[str, float]:
        """Plausible price window (in reference units) for a currency."""
        return self.price_ranges.get(currency, DEFAULT_PRICE_RANGE)


def load_settings(filename: str = 'settings.yaml') -> Settings:
    """
    Load runtime settings, applying environment overrides.

    Environment:
        SNOWPRICE_DATA_DIR: directory for the catalog snapshot and custom stores
        SNOWPRICE_MAX_WORKERS: size of the cross-store worker pool

    Returns:
        Settings instance
    """
    try:
        raw = load_config(filename)
    except FileNotFoundError:
        raw = {}

    settings = Settings(
        data_dir=Path(raw.get('data_dir', 'data')),
        max_workers=int(raw.get('max_workers', 4)),
        request_timeout=float(raw.get('request_timeout', 30)),
        store_timeout=float(raw.get('store_timeout', 600)),
        page_delay=float(raw.get('page_delay', 1.5)),
        max_pages=int(raw.get('max_pages', 15)),
        price_ranges=raw.get('price_ranges', {}) or {},
    )

    data_dir = os.environ.get("SNOWPRICE_DATA_DIR")
    if data_dir:
        settings.data_dir = Path(data_dir)

    max_workers = os.environ.get("SNOWPRICE_MAX_WORKERS")
    if max_workers:
        settings.max_workers = max(1, int(max_workers))

    return settings


def get_brands_lowercase_map(brands: Optional[List[str]] = None) -> Dict[str, str]:
    """
    Get mapping from lowercase brand name to canonical form.

    Args:
        brands: Brand names (if None, loads from config)

    Returns:
        Dictionary mapping lowercase brand to canonical form

    Example:
        {'burton': 'Burton', 'lib tech': 'Lib Tech'}
    """
    if brands is None:
        brands = load_known_brands()

    return {brand.lower(): brand for brand in brands}
