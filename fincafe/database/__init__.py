"""
Farm database lifecycle and session management.

This package manages the control-plane database and the per-farm databases:
connection caching, provisioning, migrations, default data and failure
classification.

Architecture:
    Each farm has a dedicated database on the control-plane server. Database
    names follow the pattern {FARM_DATABASE_PREFIX}{farm code}, e.g.
    customer_demo_farm. The schema is the same everywhere and is owned by the
    Alembic migration set in fincafe/migrations.

Main Components:
    - session: URL derivation and control-plane sessions
    - tenant_session: cached engines per farm database
    - tenant_provisioning: database creation and initialization
    - tenant_migrations: migration tool invocation
    - tenant_seeding: default permissions, roles and crop type
    - errors: error taxonomy and not-provisioned detection
    - registry: farm lookups on the control plane

Usage:
    ```python
    from fincafe.database import farm_session, get_farm_database_name, initialize_farm

    database_name = get_farm_database_name("demo-farm")
    await initialize_farm(database_name)

    async with farm_session(database_name) as session:
        ...
    ```
"""

from fincafe.models.base import Base

from .errors import (
    FarmDatabaseError,
    FarmErrorKind,
    FarmNotProvisionedError,
    InvalidFarmIdentifierError,
    MigrationError,
    classify_farm_error,
    is_duplicate_database_error,
    is_not_provisioned_error,
)
from .session import (
    build_database_url,
    dispose_control_engine,
    get_control_db_session,
    get_control_engine,
)
from .tenant_migrations import MigrationResult, apply_migrations, migrate_farm_database
from .tenant_provisioning import (
    create_farm_database,
    get_farm_database_name,
    initialize_farm,
    migrate_active_farms,
    validate_database_name,
    validate_farm_code,
)
from .tenant_seeding import SeedSummary, seed_farm_database
from .tenant_session import (
    TenantConnectionCache,
    close_all_farm_databases,
    farm_session,
    get_connection_cache,
    get_farm_database,
)

__all__ = [
    # Base
    "Base",
    # Errors
    "FarmDatabaseError",
    "FarmErrorKind",
    "FarmNotProvisionedError",
    "InvalidFarmIdentifierError",
    "MigrationError",
    "classify_farm_error",
    "is_duplicate_database_error",
    "is_not_provisioned_error",
    # Control plane
    "build_database_url",
    "dispose_control_engine",
    "get_control_db_session",
    "get_control_engine",
    # Connection cache
    "TenantConnectionCache",
    "close_all_farm_databases",
    "farm_session",
    "get_connection_cache",
    "get_farm_database",
    # Provisioning
    "create_farm_database",
    "get_farm_database_name",
    "initialize_farm",
    "migrate_active_farms",
    "validate_database_name",
    "validate_farm_code",
    # Migrations and seeding
    "MigrationResult",
    "SeedSummary",
    "apply_migrations",
    "migrate_farm_database",
    "seed_farm_database",
]
