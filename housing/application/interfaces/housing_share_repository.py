from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from housing.domain.entities.housing_share import HousingShare


@dataclass(frozen=True)
class ListingCriteria:
    """Exact-match and inclusive price-range filters. ``None`` means unconstrained."""

    governorate: str | None = None
    status: str | None = None
    gender: str | None = None
    min_price: Decimal | None = None
    max_price: Decimal | None = None


class HousingShareRepository(ABC):
    """Port for persisting and querying HousingShare records."""

    @abstractmethod
    async def add(self, listing: HousingShare) -> None:
        ...

    @abstractmethod
    async def update(self, listing: HousingShare) -> None:
        ...

    @abstractmethod
    async def delete(self, listing_id: UUID) -> bool:
        """Remove the record; return False if it did not exist."""
        ...

    @abstractmethod
    async def get_by_id(self, listing_id: UUID) -> HousingShare | None:
        ...

    @abstractmethod
    async def find(
        self, criteria: ListingCriteria, *, limit: int, offset: int
    ) -> list[HousingShare]:
        """Return matching records, newest first."""
        ...

    @abstractmethod
    async def count(self, criteria: ListingCriteria) -> int:
        ...
