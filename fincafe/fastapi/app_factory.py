"""
FastAPI application factory for FinCafe services.

Every service is assembled the same way: logging first, then CORS, request
timing, the versioned API router, the service info routes and the error
handlers. Lifecycle hooks (closing farm engines on shutdown) are attached by
the caller through ``additional_setup``.

Routes added to every app:
    - GET /: service name, version and links
    - GET /health: liveness probe
    - GET /docs, /redoc, /openapi.json

Error responses:
    - APIError raised from a route: its status code, body from APIError.to_content()
    - anything else: 500 {"error": "An error occurred while processing your request. ..."}

Usage:
    ```python
    from fincafe.fastapi import create_fastapi_app

    app = create_fastapi_app(
        service_name="farm-service",
        description="Farm database lifecycle API",
        api_router=api_router,
    )
    ```
"""

from collections.abc import Callable
import time
from typing import Any

from fastapi import APIRouter, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from loguru import logger

from fincafe.config import BaseServiceSettings, get_settings
from fincafe.exceptions import APIError
from fincafe.logging import setup_logging

# Admin panel dev servers
DEV_CORS_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:4200",
    "http://127.0.0.1:3000",
    "http://127.0.0.1:4200",
]

GENERIC_ERROR_MESSAGE = "An error occurred while processing your request. Please try again later."


def _cors_origins(settings: BaseServiceSettings) -> list[str]:
    if settings.ENVIRONMENT == "PROD":
        return settings.CORS_ORIGINS
    return DEV_CORS_ORIGINS


def _add_request_timing(app: FastAPI) -> None:
    @app.middleware("http")
    async def add_process_time_header(
        request: Request, call_next: Callable[[Request], Any]
    ) -> Response:
        started = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - started
        response.headers["X-Process-Time"] = f"{elapsed:.6f}"
        logger.info(f"{request.method} {request.url.path} - {response.status_code} - {elapsed:.3f}s")
        return response


def _add_service_routes(app: FastAPI, settings: BaseServiceSettings) -> None:
    @app.get("/health")
    async def health_check() -> dict[str, Any]:
        return {
            "service": settings.SERVICE_NAME,
            "version": settings.SERVICE_VERSION,
            "status": "healthy",
            "timestamp": time.time(),
        }

    @app.get("/")
    async def root() -> dict[str, Any]:
        return {
            "service": settings.SERVICE_NAME,
            "version": settings.SERVICE_VERSION,
            "message": f"{settings.SERVICE_NAME} is running",
            "docs": "/docs",
            "health": "/health",
        }


def _add_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(APIError)
    async def api_error_handler(request: Request, exc: APIError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=exc.to_content())

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.opt(exception=exc).error(
            f"Unhandled exception in {request.method} {request.url.path}: {exc}"
        )
        return JSONResponse(status_code=500, content={"error": GENERIC_ERROR_MESSAGE})


def create_fastapi_app(
    service_name: str,
    description: str,
    api_router: APIRouter | None = None,
    additional_setup: Callable[[FastAPI, BaseServiceSettings], None] | None = None,
    root_path: str = "",
) -> FastAPI:
    """
    Build a configured FastAPI application.

    Args:
        service_name: Service name (e.g. "farm-service"). Selects the settings
            class and names the log files.
        description: Description shown in the OpenAPI document.
        api_router: Router mounted under settings.API_V1_STR.
        additional_setup: Called last as ``additional_setup(app, settings)``.
        root_path: Prefix when served behind a reverse proxy. Ignored in DEV.

    Returns:
        The application.

    Example:
        ```python
        def register_shutdown(app: FastAPI, settings: BaseServiceSettings) -> None:
            @app.on_event("shutdown")
            async def close_databases() -> None:
                await close_all_farm_databases()

        app = create_fastapi_app("farm-service", "Farm service", additional_setup=register_shutdown)
        ```
    """
    setup_logging(service_name)
    settings = get_settings(service_name)

    app = FastAPI(
        title=settings.SERVICE_NAME,
        version=settings.SERVICE_VERSION,
        description=description,
        root_path=root_path if settings.ENVIRONMENT != "DEV" else "",
    )

    # allow_credentials=True is incompatible with allow_origins=["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_cors_origins(settings),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    _add_request_timing(app)

    if api_router is not None:
        app.include_router(api_router, prefix=settings.API_V1_STR)

    _add_service_routes(app, settings)
    _add_exception_handlers(app)

    if additional_setup is not None:
        additional_setup(app, settings)

    logger.info(f"{settings.SERVICE_NAME} {settings.SERVICE_VERSION} configured ({settings.ENVIRONMENT})")
    return app
