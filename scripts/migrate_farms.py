#!/usr/bin/env python3
"""
Apply pending migrations to every active farm database.

Run this after adding a revision to fincafe/migrations. Each active farm in
the control-plane registry is migrated and re-seeded (seeding only adds
missing default rows). A failing farm does not stop the others; the exit
status is 1 if any farm failed.

Usage:
    python scripts/migrate_farms.py
"""

import argparse
import asyncio
import sys

from dotenv import load_dotenv
from loguru import logger

from fincafe.database import (
    close_all_farm_databases,
    dispose_control_engine,
    get_control_db_session,
    migrate_active_farms,
)
from fincafe.logging import setup_logging


async def run() -> int:
    try:
        async with get_control_db_session() as session:
            results = await migrate_active_farms(session)
    finally:
        await close_all_farm_databases()
        await dispose_control_engine()

    failed = [name for name, outcome in results.items() if isinstance(outcome, Exception)]
    for name, outcome in results.items():
        status = "FAILED" if name in failed else "ok"
        logger.info(f"  {name}: {status}")

    if failed:
        logger.error(f"{len(failed)} of {len(results)} farm database(s) failed to migrate")
        return 1
    logger.info(f"All {len(results)} farm database(s) are up to date")
    return 0


def main() -> int:
    argparse.ArgumentParser(description="Migrate every active farm database").parse_args()

    load_dotenv()
    setup_logging("migrate-farms")
    return asyncio.run(run())


if __name__ == "__main__":
    sys.exit(main())
