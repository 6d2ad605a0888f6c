"""
Default data for newly initialized farm databases.

Every farm starts with the same access-control catalogue and one crop type:

    - 10 permissions covering users, roles and permissions
    - 4 roles (admin, manager, employee, viewer), each linked to a subset of
      the permissions when the role is first created
    - the "Coffee" crop type

Seeding is idempotent. Rows are inserted with ON CONFLICT (name) DO NOTHING,
so anything already present, including rows edited by farm administrators, is
left exactly as it is. Permission links are only written for roles created by
the current run; an existing role keeps whatever permissions it has.

Example:
    ```python
    from fincafe.database.tenant_seeding import seed_farm_database

    summary = await seed_farm_database("customer_demo_farm")
    print(summary.roles_created)  # ['admin', 'manager', 'employee', 'viewer'] on first run
    ```
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from loguru import logger
from sqlalchemy import Table, insert, select
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncConnection

from fincafe.database.errors import FarmNotProvisionedError, is_not_provisioned_error
from fincafe.database.tenant_session import TenantConnectionCache, get_connection_cache
from fincafe.models import CropType, Permission, Role, role_permissions
from fincafe.models.access import new_id

# Resource the manager and employee tiers are built around
PRIMARY_RESOURCE = "users"

DEFAULT_PERMISSIONS: tuple[dict[str, str], ...] = (
    {"name": "users.create", "resource": "users", "action": "create", "description": "Create new users"},
    {"name": "users.read", "resource": "users", "action": "read", "description": "View users"},
    {"name": "users.update", "resource": "users", "action": "update", "description": "Update users"},
    {"name": "users.delete", "resource": "users", "action": "delete", "description": "Delete users"},
    {"name": "roles.create", "resource": "roles", "action": "create", "description": "Create new roles"},
    {"name": "roles.read", "resource": "roles", "action": "read", "description": "View roles"},
    {"name": "roles.update", "resource": "roles", "action": "update", "description": "Update roles"},
    {"name": "roles.delete", "resource": "roles", "action": "delete", "description": "Delete roles"},
    {"name": "permissions.read", "resource": "permissions", "action": "read", "description": "View permissions"},
    {"name": "permissions.manage", "resource": "permissions", "action": "manage", "description": "Manage permissions"},
)

DEFAULT_ROLES: tuple[dict[str, str], ...] = (
    {"name": "admin", "description": "Administrator with full access"},
    {"name": "manager", "description": "Manager with user management access"},
    {"name": "employee", "description": "Employee with limited access"},
    {"name": "viewer", "description": "Viewer with read-only access"},
)

DEFAULT_CROP_TYPE: dict[str, str] = {"name": "Coffee", "description": "Coffee crop (default)"}

ROLE_GRANTS: dict[str, Callable[[Any], bool]] = {
    "admin": lambda p: True,
    "manager": lambda p: p.resource == PRIMARY_RESOURCE or p.action == "read",
    "employee": lambda p: p.resource == PRIMARY_RESOURCE and p.action in ("read", "update"),
    "viewer": lambda p: p.action == "read",
}


@dataclass
class SeedSummary:
    """What a seeding run found or created."""

    permissions: int = 0
    roles_created: list[str] = field(default_factory=list)
    roles: list[str] = field(default_factory=list)
    crop_type: str | None = None


def permission_groups(
    permissions: Sequence[Any],
    grants: Mapping[str, Callable[[Any], bool]] = ROLE_GRANTS,
) -> dict[str, list[Any]]:
    """
    Split permissions into role tiers.

    Args:
        permissions: Permission objects or rows exposing ``resource`` and
            ``action``.
        grants: Role name to predicate. Defaults to the farm role tiers.

    Returns:
        Mapping of role name to the permissions that role is granted, in the
        order they were given.

    Example:
        ```python
        groups = permission_groups(rows)
        [p.name for p in groups["employee"]]  # ['users.read', 'users.update']
        ```
    """
    return {
        role_name: [p for p in permissions if predicate(p)]
        for role_name, predicate in grants.items()
    }


def insert_ignoring_duplicates(
    connection: AsyncConnection, table: Table, conflict_column: str = "name"
) -> Any:
    """INSERT ... ON CONFLICT (<conflict_column>) DO NOTHING for the connection's dialect."""
    dialect = connection.dialect.name
    if dialect == "postgresql":
        stmt = postgresql.insert(table)
    elif dialect == "sqlite":
        stmt = sqlite.insert(table)
    else:
        msg = f"Seeding is not supported on the '{dialect}' dialect"
        raise NotImplementedError(msg)
    return stmt.on_conflict_do_nothing(index_elements=[conflict_column])


async def upsert_permissions(
    connection: AsyncConnection, permissions: Sequence[Mapping[str, str]]
) -> list[Any]:
    """
    Insert missing permissions and return all of them as rows.

    Returns:
        Rows with id, name, resource and action for every requested
        permission, whether it was inserted now or already existed.
    """
    table = Permission.__table__
    await connection.execute(
        insert_ignoring_duplicates(connection, table),
        [{"id": new_id(), **permission} for permission in permissions],
    )
    names = [permission["name"] for permission in permissions]
    result = await connection.execute(
        select(table.c.id, table.c.name, table.c.resource, table.c.action)
        .where(table.c.name.in_(names))
        .order_by(table.c.resource, table.c.action)
    )
    return list(result.all())


async def upsert_roles(
    connection: AsyncConnection,
    roles: Sequence[Mapping[str, str]],
    groups: Mapping[str, Sequence[Any]],
) -> list[str]:
    """
    Insert missing roles, linking each new role to its permission group.

    Existing roles are not touched and their links are not changed.

    Returns:
        Names of the roles created by this call.
    """
    table = Role.__table__
    created_names: list[str] = []
    for role in roles:
        created = (
            await connection.execute(
                insert_ignoring_duplicates(connection, table)
                .values(id=new_id(), **role)
                .returning(table.c.id)
            )
        ).first()
        if created is None:
            continue
        created_names.append(role["name"])
        links = [
            {"role_id": created.id, "permission_id": permission.id}
            for permission in groups.get(role["name"], ())
        ]
        if links:
            await connection.execute(insert(role_permissions), links)
    return created_names


async def seed_default_data(connection: AsyncConnection) -> SeedSummary:
    """
    Insert the default farm catalogue using an open connection.

    Runs inside the caller's transaction. Used by seed_farm_database and by
    tests that already hold a connection.
    """
    roles_table = Role.__table__
    summary = SeedSummary()

    permissions = await upsert_permissions(connection, DEFAULT_PERMISSIONS)
    summary.permissions = len(permissions)
    logger.debug(f"{summary.permissions} default permissions present")

    summary.roles_created = await upsert_roles(
        connection, DEFAULT_ROLES, permission_groups(permissions)
    )

    role_names = [role["name"] for role in DEFAULT_ROLES]
    summary.roles = list(
        (
            await connection.execute(
                select(roles_table.c.name)
                .where(roles_table.c.name.in_(role_names))
                .order_by(roles_table.c.name)
            )
        ).scalars()
    )

    await connection.execute(
        insert_ignoring_duplicates(connection, CropType.__table__).values(
            id=new_id(), **DEFAULT_CROP_TYPE
        )
    )
    summary.crop_type = DEFAULT_CROP_TYPE["name"]
    return summary


async def seed_farm_database(
    database_name: str, cache: TenantConnectionCache | None = None
) -> SeedSummary:
    """
    Seed a migrated farm database with default permissions, roles and crop type.

    All inserts run in one transaction through the farm's cached engine.

    Args:
        database_name: Name of the farm database.
        cache: Connection cache to use. Defaults to the process-wide cache.

    Returns:
        SeedSummary describing the run.

    Raises:
        FarmNotProvisionedError: If the database or its tables do not exist.
        SQLAlchemyError: Any other database failure. Nothing is committed.
    """
    if cache is None:
        cache = get_connection_cache()
    engine = cache.get_connection(database_name)

    logger.info(f"Seeding farm database '{database_name}'")
    try:
        async with engine.begin() as connection:
            summary = await seed_default_data(connection)
    except Exception as e:
        if is_not_provisioned_error(e):
            raise FarmNotProvisionedError(database_name) from e
        logger.error(f"Error seeding farm database '{database_name}': {e}")
        raise

    if summary.roles_created:
        logger.info(f"Created roles: {', '.join(summary.roles_created)}")
    logger.info(
        f"Farm database '{database_name}' seeded: {summary.permissions} permissions, "
        f"{len(summary.roles)} roles, default crop type '{summary.crop_type}'"
    )
    return summary
