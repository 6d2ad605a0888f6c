"""
ORM models for the canonical FinCafe schema.

One schema is shared by the control-plane database and every farm database:

1. Access control: Permission, Role, User (and the role_permissions link table)
2. Registry: Farm (only populated in the control plane)
3. Crops: CropType, Variety, Plot, HarvestCollection (only populated in farms)

All models inherit from fincafe.models.Base, which provides created_at and
updated_at timestamps. Importing this package registers every table on
Base.metadata, which the Alembic environment relies on.
"""

from .base import Base
from .access import Permission, Role, User, role_permissions
from .crops import CropType, HarvestCollection, Plot, Variety
from .farms import Farm

__all__ = [
    "Base",
    "CropType",
    "Farm",
    "HarvestCollection",
    "Permission",
    "Plot",
    "Role",
    "User",
    "Variety",
    "role_permissions",
]
