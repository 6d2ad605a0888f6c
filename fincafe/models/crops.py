"""
Crop models - crop types, varieties, plots and harvest collections.

These tables only hold data inside farm databases. The default "Coffee" crop
type is inserted by the farm seeder.
"""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import TIMESTAMP, Float, ForeignKey, Index, String, Text, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fincafe.models.base import Base
from fincafe.models.access import new_id


class CropType(Base):
    __tablename__ = "crop_types"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(100), unique=True)
    description: Mapped[Optional[str]] = mapped_column(Text)

    varieties: Mapped[list[Variety]] = relationship(
        back_populates="crop_type", cascade="all, delete-orphan"
    )


class Variety(Base):
    __tablename__ = "varieties"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    crop_type_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("crop_types.id", ondelete="CASCADE")
    )
    name: Mapped[str] = mapped_column(String(100))
    description: Mapped[Optional[str]] = mapped_column(Text)

    crop_type: Mapped[CropType] = relationship(back_populates="varieties")

    __table_args__ = (
        UniqueConstraint("crop_type_id", "name", name="uq_varieties_crop_type_name"),
    )


class Plot(Base):
    __tablename__ = "plots"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255), unique=True)
    area_hectares: Mapped[Optional[float]] = mapped_column(Float)
    latitude: Mapped[Optional[float]] = mapped_column(Float)
    longitude: Mapped[Optional[float]] = mapped_column(Float)
    notes: Mapped[Optional[str]] = mapped_column(Text)


class HarvestCollection(Base):
    __tablename__ = "harvest_collections"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    plot_id: Mapped[str] = mapped_column(String(36), ForeignKey("plots.id", ondelete="CASCADE"))
    crop_type_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("crop_types.id", ondelete="CASCADE")
    )
    picker_name: Mapped[str] = mapped_column(String(255))
    kilograms: Mapped[float] = mapped_column(Float)
    collection_date: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now()
    )
    notes: Mapped[Optional[str]] = mapped_column(Text)

    __table_args__ = (
        Index("ix_harvest_collections_plot_id", "plot_id"),
        Index("ix_harvest_collections_crop_type_id", "crop_type_id"),
        Index("ix_harvest_collections_collection_date", "collection_date"),
    )
