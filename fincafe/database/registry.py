"""
Farm registry lookups on the control-plane database.

The registry is owned by the admin application; the farm database lifecycle
only needs to resolve a farm to its database name, list the active farms and
record when a farm was initialized.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fincafe.models import Farm


async def get_farm_by_id(session: AsyncSession, farm_id: str) -> Farm | None:
    return await session.get(Farm, farm_id)


async def get_farm_by_code(session: AsyncSession, code: str) -> Farm | None:
    result = await session.execute(select(Farm).where(Farm.code == code))
    return result.scalar_one_or_none()


async def list_active_farms(session: AsyncSession) -> list[Farm]:
    result = await session.execute(
        select(Farm).where(Farm.is_active.is_(True)).order_by(Farm.code)
    )
    return list(result.scalars())


async def mark_farm_initialized(session: AsyncSession, farm: Farm) -> Farm:
    """Stamp initialized_at on the registry row. The caller commits."""
    farm.initialized_at = datetime.now(timezone.utc)
    session.add(farm)
    await session.flush()
    return farm
