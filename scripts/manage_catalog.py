#!/usr/bin/env python3
"""
Catalog Management Script

Refreshes the price catalog, manages custom stores and applies manual
classification.

Usage:
    python3 scripts/manage_catalog.py refresh
    python3 scripts/manage_catalog.py refresh --stores murasaki northshore
    python3 scripts/manage_catalog.py add-store https://shop.example.com/collections/snowboards
    python3 scripts/manage_catalog.py add-store https://shop.example.jp/list --name "Example" --force
    python3 scripts/manage_catalog.py add-store https://shop.example.com --page https://shop.example.com/boards snowboard
    python3 scripts/manage_catalog.py confirm shop-example-com
    python3 scripts/manage_catalog.py remove-store shop-example-com
    python3 scripts/manage_catalog.py store-categories shop-example-com
    python3 scripts/manage_catalog.py set-categories shop-example-com --page https://shop.example.com/bindings binding
    python3 scripts/manage_catalog.py classify burton-custom snowboard
    python3 scripts/manage_catalog.py learn-keyword binding cartel
    python3 scripts/manage_catalog.py show --limit 20

Environment (.env is loaded):
    SNOWPRICE_DATA_DIR     Directory for products.json and custom stores (default: data)
    SNOWPRICE_MAX_WORKERS  Stores refreshed in parallel (default: 4)
"""

import argparse
import logging
import os
import sys
from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from dotenv import load_dotenv

from snowprice.catalog import CatalogService, ConfirmationRequired
from snowprice.common.config_loader import load_settings
from snowprice.common.log_config import setup_logging
from snowprice.errors import CatalogError

load_dotenv()

logger = logging.getLogger(__name__)


def _format_price(value) -> str:
    return f"¥{value:,}" if value is not None else "-"


def _pages(pairs) -> list:
    return [{"url": url, "category": category} for url, category in (pairs or [])]


def print_consensus(consensus) -> None:
    if consensus is None:
        return
    print(f"  Consensus:        {consensus.status.value}")
    print(f"  {consensus.primary.method:<17} {consensus.primary.count}")
    print(f"  {consensus.secondary.method:<17} {consensus.secondary.count}")
    print(f"  Difference:       {consensus.difference_percent:.1f}%")
    print(f"  Merged:           {len(consensus.merged)} "
          f"(in both {len(consensus.in_both)}, only primary {len(consensus.only_in_primary)}, "
          f"only secondary {len(consensus.only_in_secondary)})")
    for warning in consensus.warnings:
        print(f"  ⚠️  {warning}")


def cmd_refresh(service: CatalogService, args) -> int:
    result = service.refresh_all(args.stores or None)
    if service.last_quality is not None:
        service.last_quality.print_final_report()
    print(f"\nCatalog: {result.snapshot.total_raw_products} listings, "
          f"{result.snapshot.total_products} products")
    return 1 if result.failed and not result.refreshed else 0


def cmd_add_store(service: CatalogService, args) -> int:
    outcome = service.add_store(
        args.url,
        name=args.name,
        force_accept=args.force,
        skip_validation=args.skip_validation,
        categories=_pages(args.page),
    )

    print("=" * 60)
    if isinstance(outcome, ConfirmationRequired):
        print(f"Confirmation required: {outcome.store.name} ({outcome.store.id})")
        print("=" * 60)
        print_consensus(outcome.consensus)
        print("\n  Preview:")
        for listing in outcome.preview:
            print(f"    {listing.brand} {listing.name}  {listing.sale_price} {listing.currency}")
        print(f"\nRun 'manage_catalog.py confirm {outcome.store.id}' to apply.")
        return 2

    print(f"Added store: {outcome.store.name} ({outcome.store.id})")
    print("=" * 60)
    print(f"  Method:           {outcome.store.method}")
    print(f"  Currency:         {outcome.store.currency}")
    print(f"  Listings:         {outcome.product_count}")
    print_consensus(outcome.consensus)
    print("\n  Sample:")
    for listing in outcome.sample_listings:
        print(f"    {listing.brand} {listing.name}  {_format_price(listing.price_reference)}")
    return 0


def cmd_confirm(service: CatalogService, args) -> int:
    result = service.confirm_store(args.store_id)
    print(f"Applied {result.store.id}: {result.product_count} listings")
    return 0


def cmd_remove_store(service: CatalogService, args) -> int:
    if service.remove_store(args.store_id):
        print(f"Removed store {args.store_id}")
        return 0
    print(f"Store not found: {args.store_id}")
    return 1


def cmd_store_categories(service: CatalogService, args) -> int:
    pages = service.store_categories(args.store_id)
    if not pages:
        print(f"{args.store_id}: no category pages (crawls its base URL)")
    for page in pages:
        print(f"  {page.category:<12} {page.url}")
    return 0


def cmd_set_categories(service: CatalogService, args) -> int:
    result = service.update_store_categories(args.store_id, _pages(args.page))
    print(f"Updated {result.store.id}: {len(result.store.categories)} category pages, "
          f"{result.product_count} listings")
    return 0


def cmd_classify(service: CatalogService, args) -> int:
    service.classify_product(args.key, args.category)
    print(f"{args.key} -> {args.category}")
    return 0


def cmd_learn_keyword(service: CatalogService, args) -> int:
    if service.learn_keyword(args.category, args.keyword):
        print(f"Learned {args.keyword!r} for {args.category}")
    else:
        print(f"{args.keyword!r} already known for {args.category}")
    return 0


def cmd_show(service: CatalogService, args) -> int:
    snapshot = service.snapshot
    print(f"Last updated: {snapshot.last_updated or 'never'}")
    print(f"Stores: {len(snapshot.stores)} | listings: {snapshot.total_raw_products} | "
          f"products: {snapshot.total_products}")
    products = snapshot.products
    if args.category:
        products = [p for p in products if args.category in p.categories]
    for product in products[:args.limit]:
        print(f"  {_format_price(product.lowest_price):>10}  {product.brand} {product.name}  "
              f"[{', '.join(product.categories)}] {product.offer_count} offers, "
              f"lowest at {product.lowest_store}")
    return 0


COMMANDS = {
    "refresh": cmd_refresh,
    "add-store": cmd_add_store,
    "confirm": cmd_confirm,
    "remove-store": cmd_remove_store,
    "store-categories": cmd_store_categories,
    "set-categories": cmd_set_categories,
    "classify": cmd_classify,
    "learn-keyword": cmd_learn_keyword,
    "show": cmd_show,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Manage the snowboard price catalog")
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose (debug) logging"
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress info messages, show only warnings and errors"
    )
    parser.add_argument(
        "--log-file",
        help="Also append log records to this file"
    )
    parser.add_argument(
        "--data-dir",
        help="Data directory (default: SNOWPRICE_DATA_DIR or settings.yaml)"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    refresh = subparsers.add_parser("refresh", help="Re-fetch stores and rebuild the catalog")
    refresh.add_argument("--stores", nargs="+", help="Only refresh these store ids")

    add = subparsers.add_parser("add-store", help="Add a custom store from a listing URL")
    add.add_argument("url", help="Product listing page URL")
    add.add_argument("--name", help="Display name (default: derived from hostname)")
    add.add_argument(
        "--force",
        action="store_true",
        help="Apply even if the extraction passes disagree"
    )
    add.add_argument(
        "--skip-validation",
        action="store_true",
        help="Skip the second extraction pass"
    )
    add.add_argument(
        "--page",
        nargs=2,
        action="append",
        metavar=("URL", "CATEGORY"),
        help="Crawl this category page instead of the URL alone (repeatable)"
    )

    confirm = subparsers.add_parser("confirm", help="Apply a store addition awaiting confirmation")
    confirm.add_argument("store_id")

    remove = subparsers.add_parser("remove-store", help="Remove a custom store")
    remove.add_argument("store_id")

    categories = subparsers.add_parser("store-categories", help="List a store's category pages")
    categories.add_argument("store_id")

    set_categories = subparsers.add_parser(
        "set-categories",
        help="Replace a custom store's category pages and re-fetch it"
    )
    set_categories.add_argument("store_id")
    set_categories.add_argument(
        "--page",
        nargs=2,
        action="append",
        metavar=("URL", "CATEGORY"),
        help="Category page (repeatable; none goes back to the base URL)"
    )

    classify = subparsers.add_parser("classify", help="Pin a product key to a category")
    classify.add_argument("key", help="Canonical product key (e.g. burton-custom)")
    classify.add_argument("category")

    learn = subparsers.add_parser("learn-keyword", help="Add a title keyword for a category")
    learn.add_argument("category")
    learn.add_argument("keyword")

    show = subparsers.add_parser("show", help="Print the published catalog")
    show.add_argument("--category", help="Only products in this category")
    show.add_argument("--limit", type=int, default=50, help="Products to print (default: 50)")

    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(verbose=args.verbose, quiet=args.quiet, log_file=args.log_file)

    settings = load_settings()
    if args.data_dir:
        settings.data_dir = Path(args.data_dir)

    service = CatalogService.from_settings(settings)
    try:
        return COMMANDS[args.command](service, args)
    except CatalogError as e:
        logger.error("%s", e)
        print(f"\n❌ {e}")
        return 1
    except ValueError as e:
        logger.error("%s", e)
        print(f"\n❌ {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
