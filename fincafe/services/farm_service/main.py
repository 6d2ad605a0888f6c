"""
Farm Service - FastAPI Application Entry Point

This module serves as the entry point for the Farm Service, which exposes the
farm database lifecycle over HTTP:

    - POST /api/v1/farms/{farm_id}/initialize: create, migrate and seed a farm database
    - GET /api/v1/farm/{farm_code}/permissions|roles|crop-types: farm-scoped reads

Architecture:
    The control-plane database holds the farm registry. Every farm has its own
    database on the same server, reached through the process-wide connection
    cache. On shutdown all cached farm engines and the control-plane engine are
    disposed.

Example:
    To run the service locally:
        ```bash
        uvicorn fincafe.services.farm_service:app --port 8010 --reload
        ```

Attributes:
    app (FastAPI): The FastAPI application instance.
"""

from fastapi import FastAPI

from fincafe.config import BaseServiceSettings
from fincafe.database.session import dispose_control_engine
from fincafe.database.tenant_session import close_all_farm_databases
from fincafe.fastapi import create_fastapi_app
from fincafe.services.farm_service.api.v1.api import api_router


def register_database_shutdown(app: FastAPI, settings: BaseServiceSettings) -> None:
    @app.on_event("shutdown")
    async def close_database_connections() -> None:
        await close_all_farm_databases()
        await dispose_control_engine()


app = create_fastapi_app(
    service_name="farm-service",
    description="Farm database lifecycle service for FinCafe",
    api_router=api_router,
    additional_setup=register_database_shutdown,
)


if __name__ == "__main__":
    import uvicorn

    from fincafe.config import get_settings

    settings = get_settings("farm-service")
    uvicorn.run(
        "fincafe.services.farm_service.main:app",
        host="0.0.0.0",
        port=settings.PORT,
        reload=settings.DEBUG,
    )
