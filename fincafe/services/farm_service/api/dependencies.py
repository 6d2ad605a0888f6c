"""
Shared API Dependencies for the Farm Service

Dependencies:
    - get_control_session: Control-plane session, committed after the request
    - get_farm_connection_cache: The process-wide farm connection cache
    - get_active_farm: Resolves a farm code to an active registry row

Multi-Tenancy:
    Farm-scoped routes are addressed by farm code. The code is looked up in
    the control-plane registry and the request is refused before any farm
    database is touched when the farm is unknown (404) or inactive (403).

Example:
    ```python
    @router.get("/farm/{farm_code}/roles")
    async def list_roles(
        farm: Farm = Depends(get_active_farm),
        cache: TenantConnectionCache = Depends(get_farm_connection_cache),
    ):
        async with farm_session(farm.database_name, cache) as session:
            ...
    ```
"""

from collections.abc import AsyncIterator

from fastapi import Depends
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from fincafe.database.registry import get_farm_by_code
from fincafe.database.session import get_control_db_session
from fincafe.database.tenant_session import TenantConnectionCache, get_connection_cache
from fincafe.exceptions import HTTP_403_FORBIDDEN, HTTP_404_NOT_FOUND, APIError
from fincafe.models import Farm


async def get_control_session() -> AsyncIterator[AsyncSession]:
    async with get_control_db_session() as session:
        yield session


def get_farm_connection_cache() -> TenantConnectionCache:
    return get_connection_cache()


async def get_active_farm(
    farm_code: str,
    session: AsyncSession = Depends(get_control_session),
) -> Farm:
    """
    Resolve the farm_code path parameter to an active farm.

    Raises:
        APIError: 404 if no farm has this code, 403 if the farm is inactive.
    """
    farm = await get_farm_by_code(session, farm_code)
    if farm is None:
        logger.warning(f"Farm '{farm_code}' not found")
        raise APIError("Farm not found", status_code=HTTP_404_NOT_FOUND)
    if not farm.is_active:
        logger.warning(f"Farm '{farm_code}' is not active")
        raise APIError("Farm is not active", status_code=HTTP_403_FORBIDDEN)
    return farm
