"""Shared in-memory fakes for the record store and the object store."""
import asyncio
import copy
import itertools
from datetime import datetime, timedelta, timezone
from typing import Any
from uuid import UUID

import pytest

from housing.application.interfaces.housing_share_repository import (
    HousingShareRepository,
    ListingCriteria,
)
from housing.application.interfaces.object_store import ObjectStore
from housing.application.media.media_orchestrator import MediaOrchestrator
from housing.application.queries.query_compositor import QueryCompositor
from housing.application.services.listing_lifecycle_manager import ListingLifecycleManager
from housing.domain.entities.housing_share import HousingShare, MediaFile, MediaRef
from housing.domain.errors import ObjectStoreError, StorageError


class InMemoryHousingShareRepository(HousingShareRepository):
    def __init__(self) -> None:
        self.records: dict[UUID, HousingShare] = {}
        self.calls: list[str] = []
        self.fail_writes = False
        self.write_delay = 0.0

    async def _write_guard(self, name: str) -> None:
        self.calls.append(name)
        if self.write_delay:
            await asyncio.sleep(self.write_delay)
        if self.fail_writes:
            raise StorageError("Record store failed: connection lost")

    async def add(self, listing: HousingShare) -> None:
        await self._write_guard("add")
        self.records[listing.id] = copy.deepcopy(listing)

    async def update(self, listing: HousingShare) -> None:
        await self._write_guard("update")
        if listing.id not in self.records:
            raise StorageError(f"Housing share {listing.id} disappeared before update")
        self.records[listing.id] = copy.deepcopy(listing)

    async def delete(self, listing_id: UUID) -> bool:
        await self._write_guard("delete")
        return self.records.pop(listing_id, None) is not None

    async def get_by_id(self, listing_id: UUID) -> HousingShare | None:
        self.calls.append("get_by_id")
        listing = self.records.get(listing_id)
        return copy.deepcopy(listing) if listing is not None else None

    def _matches(self, listing: HousingShare, criteria: ListingCriteria) -> bool:
        if criteria.governorate is not None and listing.governorate != criteria.governorate:
            return False
        if criteria.status is not None and listing.status.value != criteria.status:
            return False
        if criteria.gender is not None and listing.preferences.gender.value != criteria.gender:
            return False
        if criteria.min_price is not None and listing.price_per_person < criteria.min_price:
            return False
        if criteria.max_price is not None and listing.price_per_person > criteria.max_price:
            return False
        return True

    async def find(
        self, criteria: ListingCriteria, *, limit: int, offset: int
    ) -> list[HousingShare]:
        self.calls.append("find")
        matches = [r for r in self.records.values() if self._matches(r, criteria)]
        matches.sort(key=lambda r: r.created_at, reverse=True)
        return [copy.deepcopy(r) for r in matches[offset : offset + limit]]

    async def count(self, criteria: ListingCriteria) -> int:
        self.calls.append("count")
        return sum(1 for r in self.records.values() if self._matches(r, criteria))

    @property
    def write_calls(self) -> list[str]:
        return [c for c in self.calls if c in ("add", "update", "delete")]


class FakeObjectStore(ObjectStore):
    def __init__(self) -> None:
        self.objects: dict[str, MediaFile] = {}
        self.uploads = 0
        self.deletes: list[str] = []
        self.fail_uploads: set[str] = set()
        self.hang_uploads: set[str] = set()
        self.fail_deletes: set[str] = set()
        self.hang_deletes: set[str] = set()
        self._ids = itertools.count(1)

    async def upload(self, file: MediaFile) -> MediaRef:
        self.uploads += 1
        if file.filename in self.hang_uploads:
            await asyncio.sleep(3600)
        if file.filename in self.fail_uploads:
            raise ObjectStoreError(f"upload rejected for {file.filename}")
        # Yield so concurrent uploads interleave
        await asyncio.sleep(0)
        deletable_id = f"obj-{next(self._ids)}"
        self.objects[deletable_id] = file
        return MediaRef(url=f"https://media.test/{deletable_id}", deletable_id=deletable_id)

    async def delete(self, deletable_id: str) -> None:
        self.deletes.append(deletable_id)
        if deletable_id in self.hang_deletes:
            await asyncio.sleep(3600)
        if deletable_id in self.fail_deletes:
            raise ObjectStoreError(f"destroy rejected for {deletable_id}")
        self.objects.pop(deletable_id, None)


class TickingClock:
    """Returns a strictly increasing UTC time on every call."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.now += timedelta(seconds=1)
        return self.now


def photo(name: str = "room.jpg") -> MediaFile:
    return MediaFile(filename=name, content=b"\xff\xd8\xff" + name.encode(), content_type="image/jpeg")


def valid_fields(**overrides: Any) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "title": "Bright room near ENIT",
        "description": "Shared flat with two engineering students.",
        "governorate": "Tunis",
        "city": "El Manar",
        "address": "12 Rue de Palestine",
        "university": "ENIT",
        "amenities": ["wifi", "washing machine"],
        "currentOccupants": 2,
        "totalCapacity": 4,
        "pricePerPerson": "250",
        "preferences": {"gender": "female", "studyField": "Engineering"},
    }
    fields.update(overrides)
    return fields


@pytest.fixture()
def repo() -> InMemoryHousingShareRepository:
    return InMemoryHousingShareRepository()


@pytest.fixture()
def object_store() -> FakeObjectStore:
    return FakeObjectStore()


@pytest.fixture()
def media(object_store: FakeObjectStore) -> MediaOrchestrator:
    return MediaOrchestrator(
        object_store, upload_timeout=0.5, delete_timeout=0.2, rollback_timeout=0.2
    )


@pytest.fixture()
def queries(repo: InMemoryHousingShareRepository) -> QueryCompositor:
    return QueryCompositor(repo, timeout=0.5)


@pytest.fixture()
def clock() -> TickingClock:
    return TickingClock()


@pytest.fixture()
def manager(
    repo: InMemoryHousingShareRepository,
    media: MediaOrchestrator,
    queries: QueryCompositor,
    clock: TickingClock,
) -> ListingLifecycleManager:
    return ListingLifecycleManager(repo, media, queries, store_timeout=0.5, clock=clock)


@pytest.fixture()
def make_photo():
    return photo


@pytest.fixture()
def make_fields():
    return valid_fields
