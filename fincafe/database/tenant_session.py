"""
Farm-aware connection cache.

One SQLAlchemy AsyncEngine is kept per farm database for the lifetime of the
process. Engines connect lazily, so asking for a farm that has not been
provisioned yet succeeds here and only fails on the first query. That failure
is classified by fincafe.database.errors.

Usage:
    ```python
    from fincafe.database.tenant_session import farm_session, get_farm_database

    engine = get_farm_database("customer_demo_farm")

    async with farm_session("customer_demo_farm") as session:
        roles = (await session.execute(select(Role))).scalars().all()
    ```
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
import threading

from loguru import logger
from sqlalchemy.engine import URL
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine

from fincafe.database.errors import FarmNotProvisionedError, is_not_provisioned_error
from fincafe.database.session import build_database_url, engine_options


class TenantConnectionCache:
    """
    Process-wide map from farm database name to its engine.

    Entries are created on first access and live until close_connection or
    close_all. Creation is guarded by a lock, so concurrent first accesses for
    the same name (from threads or from the threadpool FastAPI runs sync
    dependencies in) always observe a single engine.

    Args:
        base_url: Control-plane URL farm URLs are derived from. Defaults to
            settings.DATABASE_URL, read on each new entry.
    """

    def __init__(self, base_url: str | URL | None = None) -> None:
        self._base_url = base_url
        self._engines: dict[str, AsyncEngine] = {}
        self._lock = threading.Lock()

    def __contains__(self, database_name: str) -> bool:
        return database_name in self._engines

    def __len__(self) -> int:
        return len(self._engines)

    @property
    def database_names(self) -> list[str]:
        return list(self._engines)

    def build_url(self, database_name: str) -> URL:
        """URL for database_name on the control-plane server."""
        return build_database_url(database_name, self._base_url)

    def get_connection(self, database_name: str) -> AsyncEngine:
        """
        Get or create the engine for a farm database.

        Args:
            database_name: Name of the farm database.

        Returns:
            The cached engine. The same object is returned for every call with
            the same name until the entry is closed.

        Note:
            No connection is opened here. A missing database is reported by the
            first statement executed through the engine.
        """
        engine = self._engines.get(database_name)
        if engine is not None:
            return engine

        with self._lock:
            engine = self._engines.get(database_name)
            if engine is None:
                url = self.build_url(database_name)
                engine = create_async_engine(url, **engine_options(url))
                self._engines[database_name] = engine
                logger.info(f"Created database engine for farm database '{database_name}'")
        return engine

    async def close_connection(self, database_name: str) -> None:
        """Dispose the engine for one farm database, if cached."""
        with self._lock:
            engine = self._engines.pop(database_name, None)
        if engine is not None:
            await engine.dispose()
            logger.info(f"Closed database connections for farm database '{database_name}'")

    async def close_all(self) -> None:
        """Dispose every cached engine and empty the cache."""
        with self._lock:
            engines = list(self._engines.items())
            self._engines.clear()
        for database_name, engine in engines:
            await engine.dispose()
            logger.debug(f"Closed database connections for farm database '{database_name}'")
        if engines:
            logger.info(f"Closed {len(engines)} farm database engine(s)")


# Global instance for easy access
_connection_cache: TenantConnectionCache | None = None
_connection_cache_lock = threading.Lock()


def get_connection_cache() -> TenantConnectionCache:
    """Get the process-wide connection cache."""
    global _connection_cache
    if _connection_cache is None:
        with _connection_cache_lock:
            if _connection_cache is None:
                _connection_cache = TenantConnectionCache()
    return _connection_cache


def get_farm_database(database_name: str) -> AsyncEngine:
    """Convenience wrapper around get_connection_cache().get_connection."""
    return get_connection_cache().get_connection(database_name)


async def close_all_farm_databases() -> None:
    """Dispose every cached farm engine. Called on application shutdown."""
    await get_connection_cache().close_all()


@asynccontextmanager
async def farm_session(
    database_name: str, cache: TenantConnectionCache | None = None
) -> AsyncIterator[AsyncSession]:
    """
    Async context manager for a session on one farm database.

    Args:
        database_name: Name of the farm database.
        cache: Connection cache to use. Defaults to the process-wide cache.

    Yields:
        AsyncSession bound to the farm's cached engine.

    Raises:
        FarmNotProvisionedError: If the database or one of the queried tables
            does not exist yet.

    Example:
        ```python
        try:
            async with farm_session(farm.database_name) as session:
                crop_types = (await session.execute(select(CropType))).scalars().all()
        except FarmNotProvisionedError:
            ...  # ask an administrator to initialize the farm
        ```

    Note:
        - Sessions commit on successful exit
        - Sessions roll back on exceptions
        - Other database errors propagate unchanged
    """
    if cache is None:
        cache = get_connection_cache()
    session = AsyncSession(cache.get_connection(database_name), expire_on_commit=False)
    try:
        yield session
        await session.commit()
    except Exception as e:
        await session.rollback()
        # Driver errors raised while connecting are not always wrapped by SQLAlchemy
        if is_not_provisioned_error(e):
            logger.warning(f"Farm database '{database_name}' is not provisioned: {e}")
            raise FarmNotProvisionedError(database_name) from e
        if isinstance(e, SQLAlchemyError):
            logger.error(f"Farm database session error for '{database_name}': {e}")
        raise
    finally:
        await session.close()
