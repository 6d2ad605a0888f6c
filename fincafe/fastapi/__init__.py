"""
FastAPI utilities shared by FinCafe services.

Main Components:
    - app_factory: FastAPI application factory with standard configuration
"""
from .app_factory import create_fastapi_app

__all__ = ["create_fastapi_app"]
