"""
Farm administration endpoints.

Provides the admin-panel action that turns a registered farm into a usable
one: creating its database, applying migrations and seeding default data.

Example:
    ```bash
    curl -X POST http://localhost:8010/api/v1/farms/<farm-id>/initialize
    ```
"""

from fastapi import APIRouter, Depends
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from fincafe.database.errors import InvalidFarmIdentifierError, MigrationError
from fincafe.database.registry import get_farm_by_id, mark_farm_initialized
from fincafe.database.tenant_provisioning import initialize_farm
from fincafe.database.tenant_session import TenantConnectionCache
from fincafe.exceptions import (
    HTTP_404_NOT_FOUND,
    HTTP_500_INTERNAL_SERVER_ERROR,
    APIError,
    create_api_error,
    handle_validation_error,
)
from fincafe.services.farm_service.api.dependencies import (
    get_control_session,
    get_farm_connection_cache,
)
from fincafe.services.farm_service.api.v1.models import InitializeFarmResponse

router = APIRouter()


@router.post("/farms/{farm_id}/initialize", response_model=InitializeFarmResponse)
async def initialize_farm_database(
    farm_id: str,
    session: AsyncSession = Depends(get_control_session),
    cache: TenantConnectionCache = Depends(get_farm_connection_cache),
) -> InitializeFarmResponse:
    """
    Create, migrate and seed the database of a registered farm.

    Safe to call repeatedly: an existing database is reused, applied
    migrations are skipped and existing default rows are left untouched. On
    success the registry row is stamped with initialized_at.

    Args:
        farm_id: Registry id of the farm.

    Returns:
        InitializeFarmResponse with the farm database name.

    Raises:
        APIError: 404 if the farm does not exist.
        APIError: 422 if the stored database name is not a valid identifier.
        APIError: 500 with the failure details if any step fails.
    """
    operation = "initializing farm database"
    try:
        farm = await get_farm_by_id(session, farm_id)
        if farm is None:
            raise APIError("Farm not found", status_code=HTTP_404_NOT_FOUND)

        result = await initialize_farm(farm.database_name, cache=cache)
        await mark_farm_initialized(session, farm)

        logger.info(f"Farm '{farm.code}' initialized ({farm.database_name})")
        return InitializeFarmResponse(
            message="Farm database initialized successfully",
            databaseName=farm.database_name,
            initializedAt=farm.initialized_at,
            migrationSeconds=round(result.duration_seconds, 3),
        )

    except APIError:
        raise
    except InvalidFarmIdentifierError as e:
        raise handle_validation_error(operation, e)
    except MigrationError as e:
        raise create_api_error(
            operation,
            status_code=HTTP_500_INTERNAL_SERVER_ERROR,
            internal_error=e,
            user_message=f"Failed to initialize farm database: {e.diagnostics}",
        )
    except Exception as e:
        raise create_api_error(
            operation,
            status_code=HTTP_500_INTERNAL_SERVER_ERROR,
            internal_error=e,
            user_message=f"Failed to initialize farm database: {e}",
        )
