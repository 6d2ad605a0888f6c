"""
Default data for the control-plane database.

The control plane holds the global administrators and the farm registry. A
fresh installation gets:

    - the farm permission catalogue plus farms.create/read/update/delete
    - super_admin (every permission) and admin (user management, read roles)
    - the "demo-farm" registry row pointing at customer_demo_farm

Like farm seeding, every insert skips rows that already exist. No user
accounts are created; the first administrator is provisioned by the admin
application.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from fincafe.database.tenant_provisioning import get_farm_database_name
from fincafe.database.tenant_seeding import (
    DEFAULT_PERMISSIONS,
    insert_ignoring_duplicates,
    permission_groups,
    upsert_permissions,
    upsert_roles,
)
from fincafe.models import Farm
from fincafe.models.access import new_id

FARM_PERMISSIONS: tuple[dict[str, str], ...] = (
    {"name": "farms.create", "resource": "farms", "action": "create", "description": "Create new farms"},
    {"name": "farms.read", "resource": "farms", "action": "read", "description": "View farms"},
    {"name": "farms.update", "resource": "farms", "action": "update", "description": "Update farms"},
    {"name": "farms.delete", "resource": "farms", "action": "delete", "description": "Delete farms"},
)

CONTROL_PERMISSIONS = DEFAULT_PERMISSIONS + FARM_PERMISSIONS

CONTROL_ROLES: tuple[dict[str, str], ...] = (
    {"name": "super_admin", "description": "Super Administrator with full system access"},
    {"name": "admin", "description": "Administrator with user management access"},
)

CONTROL_ROLE_GRANTS = {
    "super_admin": lambda p: True,
    "admin": lambda p: p.resource == "users" or (p.resource == "roles" and p.action == "read"),
}

DEMO_FARM = {
    "name": "Demo Farm",
    "code": "demo-farm",
    "description": "A demonstration farm for testing purposes",
}


@dataclass
class ControlSeedSummary:
    permissions: int = 0
    roles_created: list[str] = field(default_factory=list)
    demo_farm_created: bool = False


async def seed_control_data(connection: AsyncConnection) -> ControlSeedSummary:
    """Insert the control-plane catalogue and demo farm inside the caller's transaction."""
    summary = ControlSeedSummary()

    permissions = await upsert_permissions(connection, CONTROL_PERMISSIONS)
    summary.permissions = len(permissions)
    summary.roles_created = await upsert_roles(
        connection, CONTROL_ROLES, permission_groups(permissions, CONTROL_ROLE_GRANTS)
    )

    result = await connection.execute(
        insert_ignoring_duplicates(connection, Farm.__table__, conflict_column="code").values(
            id=new_id(),
            database_name=get_farm_database_name(DEMO_FARM["code"]),
            is_active=True,
            **DEMO_FARM,
        )
    )
    summary.demo_farm_created = result.rowcount == 1
    return summary


async def seed_control_plane(engine: AsyncEngine) -> ControlSeedSummary:
    """
    Seed the control-plane database in one transaction.

    Args:
        engine: Engine bound to the control-plane database. The schema must
            already be migrated.

    Returns:
        ControlSeedSummary describing the run.
    """
    logger.info("Seeding control-plane database")
    async with engine.begin() as connection:
        summary = await seed_control_data(connection)

    logger.info(
        f"Control plane seeded: {summary.permissions} permissions, "
        f"roles created: {', '.join(summary.roles_created) or 'none'}, "
        f"demo farm {'created' if summary.demo_farm_created else 'already present'}"
    )
    return summary
