from fastapi import APIRouter

from fincafe.services.farm_service.api.v1.endpoints import farm_data, farms

api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(farms.router, tags=["Farms"])
api_router.include_router(farm_data.router, tags=["Farm Data"])
