"""
Farm-scoped data endpoints.

Read access to the access-control catalogue and crop types stored in a farm's
own database. These routes are where a farm that was registered but never
initialized shows up: the query fails with a missing database or table, and
the client receives 503 with an instruction to initialize the farm instead of
a generic server error.

Status codes:
    - 200: data returned
    - 403: farm is inactive
    - 404: no farm with this code
    - 503: farm database not initialized
    - 500: any other failure
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from loguru import logger
from sqlalchemy import select
from sqlalchemy.orm import selectinload

from fincafe.database.tenant_session import TenantConnectionCache, farm_session
from fincafe.exceptions import APIError, handle_farm_database_error
from fincafe.models import CropType, Farm, Permission, Role
from fincafe.services.farm_service.api.dependencies import (
    get_active_farm,
    get_farm_connection_cache,
)
from fincafe.services.farm_service.api.v1.models import (
    CropTypeListResponse,
    CropTypeResponse,
    PermissionResponse,
    PermissionSummary,
    RoleResponse,
    RoleSummary,
    VarietySummary,
)

router = APIRouter()


@router.get("/farm/{farm_code}/permissions", response_model=list[PermissionResponse])
async def list_farm_permissions(
    farm: Farm = Depends(get_active_farm),
    cache: TenantConnectionCache = Depends(get_farm_connection_cache),
) -> list[PermissionResponse]:
    """List the farm's permissions, ordered by resource then action."""
    try:
        async with farm_session(farm.database_name, cache) as session:
            result = await session.execute(
                select(Permission)
                .options(selectinload(Permission.roles))
                .order_by(Permission.resource, Permission.action)
            )
            permissions = [
                PermissionResponse(
                    id=permission.id,
                    name=permission.name,
                    resource=permission.resource,
                    action=permission.action,
                    description=permission.description,
                    roles=[RoleSummary(id=role.id, name=role.name) for role in permission.roles],
                )
                for permission in result.scalars()
            ]

        logger.info(f"Retrieved {len(permissions)} permissions for farm '{farm.code}'")
        return permissions

    except APIError:
        raise
    except Exception as e:
        raise handle_farm_database_error("fetching farm permissions", e)


@router.get("/farm/{farm_code}/roles", response_model=list[RoleResponse])
async def list_farm_roles(
    farm: Farm = Depends(get_active_farm),
    cache: TenantConnectionCache = Depends(get_farm_connection_cache),
) -> list[RoleResponse]:
    """List the farm's roles with their permissions, newest first."""
    try:
        async with farm_session(farm.database_name, cache) as session:
            result = await session.execute(
                select(Role)
                .options(selectinload(Role.permissions), selectinload(Role.users))
                .order_by(Role.created_at.desc(), Role.name)
            )
            roles = [
                RoleResponse(
                    id=role.id,
                    name=role.name,
                    description=role.description,
                    permissions=[
                        PermissionSummary(
                            id=permission.id,
                            name=permission.name,
                            resource=permission.resource,
                            action=permission.action,
                        )
                        for permission in role.permissions
                    ],
                    permissionCount=len(role.permissions),
                    userCount=len(role.users),
                )
                for role in result.scalars()
            ]

        logger.info(f"Retrieved {len(roles)} roles for farm '{farm.code}'")
        return roles

    except APIError:
        raise
    except Exception as e:
        raise handle_farm_database_error("fetching farm roles", e)


@router.get("/farm/{farm_code}/crop-types", response_model=CropTypeListResponse)
async def list_farm_crop_types(
    farm: Farm = Depends(get_active_farm),
    cache: TenantConnectionCache = Depends(get_farm_connection_cache),
    search: Optional[str] = Query(default=None, description="Case-insensitive name filter"),
) -> CropTypeListResponse:
    """List the farm's crop types with their varieties, ordered by name."""
    try:
        query = select(CropType).options(selectinload(CropType.varieties)).order_by(CropType.name)
        if search:
            query = query.where(CropType.name.ilike(f"%{search}%"))

        async with farm_session(farm.database_name, cache) as session:
            result = await session.execute(query)
            crop_types = [
                CropTypeResponse(
                    id=crop_type.id,
                    name=crop_type.name,
                    description=crop_type.description,
                    varieties=[
                        VarietySummary(
                            id=variety.id, name=variety.name, description=variety.description
                        )
                        for variety in crop_type.varieties
                    ],
                )
                for crop_type in result.scalars()
            ]

        logger.info(f"Retrieved {len(crop_types)} crop types for farm '{farm.code}'")
        return CropTypeListResponse(cropTypes=crop_types)

    except APIError:
        raise
    except Exception as e:
        raise handle_farm_database_error("fetching farm crop types", e)
