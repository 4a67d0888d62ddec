from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import Select, delete, false, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from housing.application.interfaces.housing_share_repository import (
    HousingShareRepository,
    ListingCriteria,
)
from housing.domain.entities.housing_share import HousingShare, MediaRef, Preferences
from housing.domain.enums.gender import Gender
from housing.domain.enums.listing_status import ListingStatus
from housing.domain.errors import StorageError
from housing.infrastructure.database.models import HousingShareModel

_STATUS_VALUES = {s.value for s in ListingStatus}
_GENDER_VALUES = {g.value for g in Gender}


def _aware(value: datetime) -> datetime:
    # SQLite hands timestamps back without tzinfo
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


def _to_domain(model: HousingShareModel) -> HousingShare:
    return HousingShare(
        id=model.id,
        owner_id=model.owner_id,
        title=model.title,
        description=model.description,
        governorate=model.governorate,
        city=model.city,
        address=model.address,
        university=model.university,
        amenities=list(model.amenities or []),
        current_occupants=model.current_occupants,
        total_capacity=model.total_capacity,
        price_per_person=Decimal(str(model.price_per_person)),
        preferences=Preferences(
            gender=Gender(model.preferred_gender),
            study_field=model.study_field,
            year_of_study=model.year_of_study,
        ),
        photos=[MediaRef(url=p["url"], deletable_id=p["deletable_id"]) for p in model.photos or []],
        status=ListingStatus(model.status),
        created_at=_aware(model.created_at),
        updated_at=_aware(model.updated_at),
    )


def _column_values(listing: HousingShare) -> dict[str, Any]:
    return {
        "title": listing.title,
        "description": listing.description,
        "governorate": listing.governorate,
        "city": listing.city,
        "address": listing.address,
        "university": listing.university,
        "amenities": list(listing.amenities),
        "current_occupants": listing.current_occupants,
        "total_capacity": listing.total_capacity,
        "price_per_person": listing.price_per_person,
        "preferred_gender": listing.preferences.gender,
        "study_field": listing.preferences.study_field,
        "year_of_study": listing.preferences.year_of_study,
        "photos": [{"url": p.url, "deletable_id": p.deletable_id} for p in listing.photos],
        "status": listing.status,
        "updated_at": listing.updated_at,
    }


def _to_model(listing: HousingShare) -> HousingShareModel:
    return HousingShareModel(
        id=listing.id,
        owner_id=listing.owner_id,
        created_at=listing.created_at,
        **_column_values(listing),
    )


def _apply_criteria(query: Select, criteria: ListingCriteria) -> Select:  # type: ignore[type-arg]
    if criteria.governorate is not None:
        query = query.where(HousingShareModel.governorate == criteria.governorate)
    if criteria.status is not None:
        if criteria.status not in _STATUS_VALUES:
            return query.where(false())
        query = query.where(HousingShareModel.status == ListingStatus(criteria.status))
    if criteria.gender is not None:
        if criteria.gender not in _GENDER_VALUES:
            return query.where(false())
        query = query.where(HousingShareModel.preferred_gender == Gender(criteria.gender))
    if criteria.min_price is not None:
        query = query.where(HousingShareModel.price_per_person >= criteria.min_price)
    if criteria.max_price is not None:
        query = query.where(HousingShareModel.price_per_person <= criteria.max_price)
    return query


class SqlAlchemyHousingShareRepository(HousingShareRepository):
    """
    SQLAlchemy implementation for housing share persistence.

    Each call runs in its own session and transaction, so a page fetch and
    its count can run concurrently.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[AsyncSession]:
        try:
            async with self._session_factory() as session, session.begin():
                yield session
        except SQLAlchemyError as exc:
            raise StorageError(f"Record store failed: {exc}") from exc

    async def add(self, listing: HousingShare) -> None:
        async with self._transaction() as session:
            session.add(_to_model(listing))

    async def update(self, listing: HousingShare) -> None:
        async with self._transaction() as session:
            model = await session.get(HousingShareModel, listing.id)
            if model is None:
                raise StorageError(f"Housing share {listing.id} disappeared before update")
            for name, value in _column_values(listing).items():
                setattr(model, name, value)

    async def delete(self, listing_id: UUID) -> bool:
        async with self._transaction() as session:
            result = await session.execute(
                delete(HousingShareModel).where(HousingShareModel.id == listing_id)
            )
            return result.rowcount > 0

    async def get_by_id(self, listing_id: UUID) -> HousingShare | None:
        async with self._transaction() as session:
            model = await session.get(HousingShareModel, listing_id)
            return _to_domain(model) if model is not None else None

    async def find(
        self, criteria: ListingCriteria, *, limit: int, offset: int
    ) -> list[HousingShare]:
        query = _apply_criteria(select(HousingShareModel), criteria)
        query = (
            query.order_by(HousingShareModel.created_at.desc(), HousingShareModel.id)
            .limit(limit)
            .offset(offset)
        )
        async with self._transaction() as session:
            result = await session.execute(query)
            return [_to_domain(m) for m in result.scalars().all()]

    async def count(self, criteria: ListingCriteria) -> int:
        query = _apply_criteria(select(func.count()).select_from(HousingShareModel), criteria)
        async with self._transaction() as session:
            result = await session.execute(query)
            return result.scalar_one()
