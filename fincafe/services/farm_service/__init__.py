"""
Farm Service Package

Package Structure:
    - main.py: FastAPI application entry point
    - api/: endpoint definitions, dependencies and response models

Usage:
    ```python
    from fincafe.services.farm_service import app

    # uvicorn fincafe.services.farm_service:app --port 8010
    ```
"""

from fincafe.services.farm_service.main import app

__all__ = ["app"]
