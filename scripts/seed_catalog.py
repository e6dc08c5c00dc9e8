#!/usr/bin/env python3
"""Seed product catalog script.

Creates the products table and, optionally, a handful of demo products
through the catalog service so ids and field rules match the API.

Usage:
    python scripts/seed_catalog.py
    python scripts/seed_catalog.py --demo
    python scripts/seed_catalog.py --demo --database-url sqlite+aiosqlite:///./dev.db
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.application.catalog_service import CatalogService
from app.application.listing_cache import ListingCache
from app.images.manager import ImageManager
from app.infrastructure.config import settings
from app.infrastructure.database import Database
from app.infrastructure.logging_config import configure_logging

DEMO_PRODUCTS = [
    {"name": "Steel Rod", "price": 450.50, "min_order_qty": "10 units"},
    {"name": "Copper Wire Spool", "price": 1299, "min_order_qty": "2 spools"},
    {"name": "Cement Bag 50kg", "price": 385, "min_order_qty": "1 dozen"},
    {"name": "PVC Pipe 3m", "price": 210.75, "min_order_qty": "20 pieces"},
    {"name": "Ceramic Floor Tile", "price": 48.9, "min_order_qty": "100 tiles"},
]


async def seed(database_url: str, demo: bool) -> dict:
    """Create the schema and optionally insert demo products.

    Args:
        database_url: SQLAlchemy async URL.
        demo: Whether to insert demo products into an empty catalog.

    Returns:
        Seeding result.
    """
    db = Database(
        database_url,
        connect_attempts=settings.db_connect_attempts,
        backoff_seconds=settings.db_connect_backoff_seconds,
        backoff_max_seconds=settings.db_connect_backoff_max_seconds,
    )
    await db.connect()
    images = ImageManager.from_settings(settings)
    result = {"existing": 0, "created": []}

    try:
        await db.create_schema()
        if not demo:
            return result

        async with db.session() as session:
            service = CatalogService(
                session,
                images=images,
                cache=ListingCache(ttl_seconds=0),
                timeout=settings.db_timeout_seconds,
            )
            existing = await service.count_products()
            result["existing"] = existing
            if existing:
                return result

            for data in DEMO_PRODUCTS:
                product = await service.create_product(data)
                result["created"].append(product.id)
    finally:
        await images.close()
        await db.dispose()

    return result


async def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Create the catalog schema and seed demo products",
    )
    parser.add_argument(
        "--database-url",
        default=settings.database_url,
        help="Database URL (default: DATABASE_URL setting)",
    )
    parser.add_argument(
        "--demo",
        action="store_true",
        help="Insert demo products when the catalog is empty",
    )

    args = parser.parse_args()
    configure_logging(settings.log_level, json=False)

    print("=" * 60)
    print("Catalog Seeder")
    print("=" * 60)
    print(f"Database: {args.database_url}")
    print()

    result = await seed(args.database_url, args.demo)

    print("Tables ready.")
    if args.demo:
        if result["existing"]:
            print(f"  - Skipped demo data: {result['existing']} products already present")
        else:
            print(f"  + Created: {', '.join(result['created'])}")
    print("=" * 60)


if __name__ == "__main__":
    asyncio.run(main())
