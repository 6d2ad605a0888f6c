"""
Farm database provisioning and initialization.

Each farm owns an isolated database on the control-plane server. This module
derives and validates database names, creates databases, and orchestrates the
full initialization of a farm.

Key Features:
    - Deterministic database names derived from the farm code
    - Identifier validation before any name reaches DDL
    - Idempotent creation ("already exists" counts as done)
    - Initialization pipeline: create -> migrate -> seed
    - Per-database serialization of concurrent initializations in one process

Database Naming:
    Farm databases follow the pattern: {FARM_DATABASE_PREFIX}{code with '-' -> '_'}
    e.g. "demo-farm" -> "customer_demo_farm"

Lifecycle:
    ```
    Absent --create_farm_database--> Created --migrate_farm_database--> Ready
    ```
    A database stuck in Created (migration failed) is reported as not
    provisioned by queries until initialize_farm is run again.

Usage:
    ```python
    from fincafe.database.tenant_provisioning import get_farm_database_name, initialize_farm

    database_name = get_farm_database_name("demo-farm")
    result = await initialize_farm(database_name)
    ```

Note:
    - Initialization is not transactional across steps. A failure leaves the
      earlier steps in place and a re-run picks up from there.
    - Nothing here ever drops a database.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
import re
import weakref

from loguru import logger
from sqlalchemy import text
from sqlalchemy.engine import URL
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.pool import NullPool

from fincafe.config import get_settings
from fincafe.database.errors import InvalidFarmIdentifierError, is_duplicate_database_error
from fincafe.database.registry import list_active_farms
from fincafe.database.session import build_database_url, to_async_url
from fincafe.database.tenant_migrations import MigrationResult, migrate_farm_database
from fincafe.database.tenant_session import TenantConnectionCache

FARM_CODE_PATTERN = re.compile(r"^[a-z0-9-]+$")
DATABASE_NAME_PATTERN = re.compile(r"^[a-z_][a-z0-9_]{0,62}$")

# Held only while an initialization runs, then collected
_initialization_locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
    weakref.WeakValueDictionary()
)


def validate_farm_code(code: str) -> str:
    """
    Check that a farm code is a URL-safe slug.

    Raises:
        InvalidFarmIdentifierError: If code is empty or contains anything other
            than lowercase letters, digits and hyphens.
    """
    if not code or not FARM_CODE_PATTERN.match(code):
        msg = (
            f"Invalid farm code '{code}'. "
            "Use only lowercase letters, numbers, and hyphens."
        )
        raise InvalidFarmIdentifierError(msg)
    return code


def validate_database_name(database_name: str) -> str:
    """
    Check that a database name is a safe PostgreSQL identifier.

    Names are interpolated into CREATE DATABASE, so only lowercase letters,
    digits and underscores are accepted, starting with a letter or underscore,
    at most 63 characters.

    Raises:
        InvalidFarmIdentifierError: If the name does not match.
    """
    if not database_name or not DATABASE_NAME_PATTERN.match(database_name):
        msg = f"Invalid farm database name '{database_name}'"
        raise InvalidFarmIdentifierError(msg)
    return database_name


def get_farm_database_name(code: str) -> str:
    """
    Generate the database name for a farm code.

    Args:
        code: Farm code (lowercase letters, digits, hyphens).

    Returns:
        FARM_DATABASE_PREFIX followed by the code with hyphens replaced by
        underscores.

    Raises:
        InvalidFarmIdentifierError: If the code or the resulting name is invalid.

    Example:
        ```python
        get_farm_database_name("demo-farm")  # "customer_demo_farm"
        ```
    """
    validate_farm_code(code)
    prefix = get_settings().FARM_DATABASE_PREFIX
    return validate_database_name(f"{prefix}{code.replace('-', '_')}")


async def _create_sqlite_database(url: URL) -> bool:
    # SQLite creates the file on first connect
    path = Path(url.database)
    if path.exists():
        return False
    engine = create_async_engine(url, poolclass=NullPool)
    try:
        async with engine.connect():
            pass
    finally:
        await engine.dispose()
    return True


async def create_farm_database(database_name: str) -> bool:
    """
    Create a farm database on the control-plane server.

    A dedicated, non-pooled connection in AUTOCOMMIT mode is used, since
    CREATE DATABASE cannot run inside a transaction. The connection cache is
    never involved.

    Args:
        database_name: Name of the database to create.

    Returns:
        True if the database was created, False if it already existed.

    Raises:
        InvalidFarmIdentifierError: If database_name is not a safe identifier.
        SQLAlchemyError: For any failure other than "already exists"
            (permissions, connectivity, ...).
    """
    validate_database_name(database_name)
    control_url = to_async_url(get_settings().DATABASE_URL)

    if control_url.get_backend_name() == "sqlite":
        created = await _create_sqlite_database(build_database_url(database_name, control_url))
        logger.info(
            f"Farm database '{database_name}' "
            f"{'created' if created else 'already exists, skipping creation'}"
        )
        return created

    engine = create_async_engine(control_url, poolclass=NullPool, isolation_level="AUTOCOMMIT")
    try:
        async with engine.connect() as connection:
            logger.info(f"Creating farm database '{database_name}'...")
            await connection.execute(
                text(f"CREATE DATABASE \"{database_name}\" WITH ENCODING 'UTF8' TEMPLATE template0")
            )
        logger.info(f"Farm database '{database_name}' created successfully")
        return True
    except SQLAlchemyError as e:
        if is_duplicate_database_error(e):
            logger.info(f"Farm database '{database_name}' already exists, skipping creation")
            return False
        logger.error(f"Error creating farm database '{database_name}': {e}")
        raise
    finally:
        await engine.dispose()


def _initialization_lock(database_name: str) -> asyncio.Lock:
    lock = _initialization_locks.get(database_name)
    if lock is None:
        lock = asyncio.Lock()
        _initialization_locks[database_name] = lock
    return lock


async def initialize_farm(
    database_name: str, cache: TenantConnectionCache | None = None
) -> MigrationResult:
    """
    Initialize a farm database: create it, apply migrations, seed defaults.

    Safe to call again after a partial failure or on a farm that is already
    ready. Concurrent calls for the same database in this process run one
    after the other; different farms initialize in parallel.

    Args:
        database_name: Name of the farm database.
        cache: Connection cache used for migrations and seeding. Defaults to
            the process-wide cache.

    Returns:
        MigrationResult of the migration step.

    Raises:
        InvalidFarmIdentifierError: If database_name is not a safe identifier.
        MigrationError: If the migration tool fails. Seeding is not attempted.
        SQLAlchemyError: If creation or seeding fails.

    Note:
        The caller is responsible for recording success on the registry row
        (see fincafe.database.registry.mark_farm_initialized).
    """
    validate_database_name(database_name)

    async with _initialization_lock(database_name):
        logger.info(f"Initializing farm database '{database_name}'")
        await create_farm_database(database_name)
        result = await migrate_farm_database(database_name, cache=cache)
        logger.info(f"Farm database '{database_name}' initialized")
        return result


async def migrate_active_farms(
    session: AsyncSession, cache: TenantConnectionCache | None = None
) -> dict[str, MigrationResult | Exception]:
    """
    Apply pending migrations and default data to every active farm.

    Used after a new migration is added to the canonical set. A failing farm
    is logged and recorded, and the remaining farms are still migrated.

    Args:
        session: Control-plane session used to list the farms.
        cache: Connection cache. Defaults to the process-wide cache.

    Returns:
        Mapping of database name to its MigrationResult, or to the exception
        that stopped it.
    """
    farms = await list_active_farms(session)
    logger.info(f"Migrating {len(farms)} active farm database(s)")

    results: dict[str, MigrationResult | Exception] = {}
    for farm in farms:
        try:
            async with _initialization_lock(farm.database_name):
                results[farm.database_name] = await migrate_farm_database(
                    farm.database_name, cache=cache
                )
        except Exception as e:
            logger.error(f"Failed to migrate farm '{farm.code}' ({farm.database_name}): {e}")
            results[farm.database_name] = e

    failed = sum(1 for outcome in results.values() if isinstance(outcome, Exception))
    logger.info(f"Farm migrations finished: {len(results) - failed} succeeded, {failed} failed")
    return results
