#!/usr/bin/env python3
"""
Create and initialize a farm database from the command line.

Runs the same pipeline as the admin panel's "initialize" action: create the
database, apply migrations, seed default data. Safe to run repeatedly.

Usage:
    python scripts/init_demo_farm.py                      # customer_demo_farm
    python scripts/init_demo_farm.py customer_finca_norte
    python scripts/init_demo_farm.py --code finca-norte
"""

import argparse
import asyncio
import sys

from dotenv import load_dotenv
from loguru import logger

from fincafe.database import (
    FarmDatabaseError,
    close_all_farm_databases,
    get_farm_database_name,
    initialize_farm,
)
from fincafe.database.errors import MigrationError
from fincafe.logging import setup_logging

DEFAULT_DATABASE_NAME = "customer_demo_farm"


async def run(database_name: str) -> int:
    try:
        result = await initialize_farm(database_name)
    except MigrationError as e:
        logger.error(f"Failed to initialize farm database '{database_name}':\n{e.diagnostics}")
        return 1
    except FarmDatabaseError as e:
        logger.error(f"Failed to initialize farm database '{database_name}': {e}")
        return 1
    except Exception as e:
        logger.opt(exception=e).error(f"Failed to initialize farm database '{database_name}': {e}")
        return 1
    finally:
        await close_all_farm_databases()

    logger.info(
        f"Farm database '{database_name}' initialized successfully "
        f"(migrations took {result.duration_seconds:.2f}s)"
    )
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Create and initialize a farm database")
    parser.add_argument(
        "database_name",
        nargs="?",
        default=None,
        help=f"Farm database name (default: {DEFAULT_DATABASE_NAME})",
    )
    parser.add_argument("--code", help="Derive the database name from a farm code instead")
    args = parser.parse_args()

    load_dotenv()
    setup_logging("init-farm")

    if args.code and args.database_name:
        parser.error("pass either a database name or --code, not both")

    try:
        database_name = (
            get_farm_database_name(args.code) if args.code else args.database_name or DEFAULT_DATABASE_NAME
        )
    except FarmDatabaseError as e:
        logger.error(str(e))
        return 1

    return asyncio.run(run(database_name))


if __name__ == "__main__":
    sys.exit(main())
