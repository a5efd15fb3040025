"""
Snowboard Price Catalog

Modules:
    models          - Data models (RawListing, CanonicalProduct, StoreConfig, ConsensusResult)
    common          - Shared utilities (config loader, logging, JSON files, text helpers)
    normalization   - Price parsing, currency detection and conversion
    matching        - Brand matching and canonical product identity
    classification  - Category rule chain and manual overrides
    extraction      - HTTP, Shopify JSON and browser extraction adapters
    validation      - Dual-pass consensus validation and refresh quality report
    catalog         - Merger, snapshot persistence, store registry, catalog service
"""

__version__ = "1.0.0"
