"""
Farm registry model - the control-plane table of tenants.

Each row maps a human-readable farm code to the name of the farm's isolated
database. Deleting a row never drops the physical database.
"""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import TIMESTAMP, Boolean, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from fincafe.models.base import Base
from fincafe.models.access import new_id


class Farm(Base):
    """
    Control-plane registry row for one farm.

    Attributes:
        code (str): URL-safe slug (lowercase letters, digits, hyphens). Immutable.
        database_name (str): Derived from code, see
            fincafe.database.tenant_provisioning.get_farm_database_name.
        is_active (bool): Gates every farm-scoped operation.
        initialized_at (datetime | None): Set by the initialize endpoint after a
            successful initialization. Informational only; readiness of the
            farm database is still decided by whether queries succeed.
    """

    __tablename__ = "farms"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255))
    code: Mapped[str] = mapped_column(String(63), unique=True)
    database_name: Mapped[str] = mapped_column(String(63), unique=True)
    description: Mapped[Optional[str]] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_by_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="SET NULL")
    )
    initialized_at: Mapped[Optional[datetime]] = mapped_column(TIMESTAMP(timezone=True))
