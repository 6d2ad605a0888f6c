#!/usr/bin/env python3
"""
Migrate and seed the control-plane database.

Applies the migration set to DATABASE_URL, then inserts the global permission
catalogue, the super_admin and admin roles and the demo farm registry row.
Existing rows are left untouched.

Usage:
    python scripts/seed_control_plane.py
    python scripts/seed_control_plane.py --skip-migrations
"""

import argparse
import asyncio
import sys

from dotenv import load_dotenv
from loguru import logger

from fincafe.config import get_settings
from fincafe.database import (
    FarmDatabaseError,
    apply_migrations,
    dispose_control_engine,
    get_control_engine,
)
from fincafe.database.control_seeding import seed_control_plane
from fincafe.database.session import to_async_url
from fincafe.logging import setup_logging


async def run(skip_migrations: bool) -> int:
    settings = get_settings()
    try:
        if not skip_migrations:
            await apply_migrations(
                to_async_url(settings.DATABASE_URL),
                settings.alembic_config_path,
                command=settings.migration_command,
                revision=settings.MIGRATION_REVISION,
            )
        await seed_control_plane(get_control_engine())
    except FarmDatabaseError as e:
        logger.error(f"Error seeding control-plane database: {e}")
        return 1
    except Exception as e:
        logger.opt(exception=e).error(f"Error seeding control-plane database: {e}")
        return 1
    finally:
        await dispose_control_engine()

    logger.info("Seed completed successfully")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(description="Migrate and seed the control-plane database")
    parser.add_argument(
        "--skip-migrations", action="store_true", help="Only seed, assume the schema is current"
    )
    args = parser.parse_args()

    load_dotenv()
    setup_logging("seed-control-plane")
    return asyncio.run(run(args.skip_migrations))


if __name__ == "__main__":
    sys.exit(main())
