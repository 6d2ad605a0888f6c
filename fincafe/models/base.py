"""
Declarative base shared by the control plane and every farm database.

Both kinds of database are built from the same metadata, so a single Alembic
migration set describes them. Tables that only matter to one side simply stay
empty on the other.

Usage:
    ```python
    from sqlalchemy import String
    from sqlalchemy.orm import Mapped, mapped_column

    from fincafe.models.base import Base

    class CropType(Base):
        __tablename__ = "crop_types"

        id: Mapped[str] = mapped_column(String(36), primary_key=True)
        name: Mapped[str] = mapped_column(String(100), unique=True)
    ```
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import TIMESTAMP, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """
    Adds server-side audit timestamps to every mapped table.

    Attributes:
        created_at (Mapped[datetime]): Set by the server on insert.
        updated_at (Mapped[datetime]): Set by the server on insert and by
            SQLAlchemy on update.

    Note:
        - func.now() renders as CURRENT_TIMESTAMP on SQLite, so the schema
          also builds on the SQLite databases the test suite uses.
    """

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now()
    )
