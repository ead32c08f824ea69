#!/usr/bin/env python
"""
Catalog check - loads tenant catalogs and prints their integrity report.

Usage:
    python scripts/check_catalog.py [TENANT ...] [--catalog-root PATH]
"""
import argparse
import sys
from pathlib import Path

from field_quote.config.logging import configure_logging
from field_quote.config.settings import get_settings
from field_quote.data.catalog_loader import CatalogProvider
from field_quote.data.integrity import check_catalog
from field_quote.engine import ConfigurationError


def main():
    parser = argparse.ArgumentParser(description="Check tenant catalogs")
    parser.add_argument("tenants", nargs="*")
    parser.add_argument("--catalog-root")
    args = parser.parse_args()

    configure_logging()
    root = Path(args.catalog_root) if args.catalog_root else get_settings().catalog_root
    provider = CatalogProvider(root)
    tenants = args.tenants or provider.tenants()

    print("=" * 60)
    print(f"CATALOG CHECK ({root})")
    print("=" * 60)

    failed = False
    for tenant in tenants:
        print()
        try:
            catalog = provider.get(tenant)
        except KeyError:
            print(f"❌ {tenant}: not found")
            failed = True
            continue
        except ConfigurationError as e:
            print(f"❌ {tenant}: {e.message}")
            failed = True
            continue

        report = check_catalog(catalog)
        status = "✅" if report.valid else "❌"
        print(f"{status} {tenant} (hash {catalog.catalog_hash})")
        print(f"  Services: {len(catalog.services)}  Combos: {len(catalog.combos)}  "
              f"Zones: {len(catalog.zones)}  Exceptions: {len(catalog.exceptions)}")
        for error in report.errors:
            print(f"  ERROR: {error}")
        for warning in report.warnings:
            print(f"  WARNING: {warning}")
        failed = failed or not report.valid

    sys.exit(1 if failed else 0)


if __name__ == "__main__":
    main()
