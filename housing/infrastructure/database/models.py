"""
SQLAlchemy ORM models.

These are purely infrastructure concerns; domain entities are mapped to/from
these models inside the repository implementations.
"""
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    JSON,
    DateTime,
    Enum as SAEnum,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    Uuid,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from housing.domain.enums.gender import Gender
from housing.domain.enums.listing_status import ListingStatus
from housing.infrastructure.database.connection import Base

_listing_status_enum = SAEnum(
    ListingStatus,
    name="listing_status",
    values_callable=lambda obj: [e.value for e in obj],
)

_gender_enum = SAEnum(
    Gender,
    name="preference_gender",
    values_callable=lambda obj: [e.value for e in obj],
)

_json = JSON().with_variant(JSONB(), "postgresql")


class HousingShareModel(Base):
    __tablename__ = "housing_shares"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    # Description
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    governorate: Mapped[str] = mapped_column(String(64), nullable=False)
    city: Mapped[str] = mapped_column(String(128), nullable=False)
    address: Mapped[str] = mapped_column(String(512), nullable=False)
    university: Mapped[str] = mapped_column(String(256), nullable=False)
    amenities: Mapped[list] = mapped_column(_json, nullable=False, default=list)  # type: ignore[type-arg]

    # Capacity and price
    current_occupants: Mapped[int] = mapped_column(Integer, nullable=False)
    total_capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    price_per_person: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)

    # Preferences
    preferred_gender: Mapped[Gender] = mapped_column(_gender_enum, nullable=False)
    study_field: Mapped[str | None] = mapped_column(String(256), nullable=True)
    year_of_study: Mapped[str | None] = mapped_column(String(64), nullable=True)

    # Ordered list of {"url": ..., "deletable_id": ...}
    photos: Mapped[list] = mapped_column(_json, nullable=False, default=list)  # type: ignore[type-arg]

    status: Mapped[ListingStatus] = mapped_column(_listing_status_enum, nullable=False, index=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("ix_housing_shares_governorate_status_price", "governorate", "status", "price_per_person"),
    )
