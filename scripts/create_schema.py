#!/usr/bin/env python
"""Create the reconciliation engine tables.

Usage:
    python scripts/create_schema.py
    python scripts/create_schema.py --database-url postgresql+asyncpg://...
    python scripts/create_schema.py --dry-run
"""

from __future__ import annotations

import argparse
import asyncio
import sys

from contapyme_engine.config import get_settings
from contapyme_engine.database import create_schema, get_engine
from contapyme_engine.models import Base


async def run(database_url: str) -> None:
    engine = get_engine(database_url)
    try:
        await create_schema(engine)
    finally:
        await engine.dispose()


def main() -> int:
    parser = argparse.ArgumentParser(description="Create reconciliation engine tables")
    parser.add_argument(
        "--database-url",
        default=get_settings().database_url,
        help="Database URL (async driver)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="List the tables without touching the database",
    )

    args = parser.parse_args()

    print("Schema setup")
    print("=" * 50)
    print(f"Database: {args.database_url.split('@')[-1] if '@' in args.database_url else args.database_url}")
    print()

    tables = sorted(Base.metadata.tables)
    print(f"Tables ({len(tables)}):")
    for name in tables:
        print(f"  {name}")

    if args.dry_run:
        print("\n[DRY RUN] Nothing created")
        return 0

    asyncio.run(run(args.database_url))
    print("\nSchema created.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
