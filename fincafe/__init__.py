"""
Farm database lifecycle management for the FinCafe platform.

Every farm (tenant) on FinCafe owns a physically isolated PostgreSQL database.
This package creates those databases on demand, brings them to the canonical
schema with Alembic, seeds the default access-control data and hands out
cached connection handles for everyday queries.

Modules:
    - config: Environment-based settings (pydantic-settings)
    - database: Connection cache, provisioning, migrations, seeding, registry
    - exceptions: HTTP error helpers for the API layer
    - fastapi: FastAPI application factory
    - logging: Centralized loguru configuration
    - models: SQLAlchemy ORM models for the canonical schema
    - services: HTTP services built on top of the database layer

Usage:
    ```python
    from fincafe.database import farm_session, initialize_farm

    await initialize_farm("customer_demo_farm")

    async with farm_session("customer_demo_farm") as session:
        roles = (await session.scalars(select(Role))).all()
    ```
"""

__version__ = "0.1.0"
