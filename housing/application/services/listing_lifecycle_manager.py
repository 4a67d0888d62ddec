"""
Listing lifecycle manager: the only writer of housing share records.

Every write follows the same order:

1. normalize the client fields and check invariants (no I/O yet);
2. upload new photos, if any;
3. commit the record;
4. release photos the record no longer references.

If step 3 fails after step 2 succeeded, the fresh uploads are rolled back and
the rollback outcome travels on the StorageError. Failures in step 4 are never
fatal; they come back as warnings alongside the successful result.
"""
import asyncio
from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, TypeVar
from uuid import UUID

import structlog

from housing.application.interfaces.housing_share_repository import HousingShareRepository
from housing.application.media.media_orchestrator import MediaOrchestrator
from housing.application.normalization import normalize_listing_fields
from housing.application.queries.query_compositor import ListingPage, QueryCompositor
from housing.domain.entities.housing_share import HousingShare, MediaFile, MediaRef
from housing.domain.errors import AuthorizationError, NotFoundError, StorageError
from housing.domain.validation.invariant_validator import validate

logger = structlog.get_logger(__name__)

T = TypeVar("T")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class UpdateHousingShareOutput:
    listing: HousingShare
    warnings: list[str] = field(default_factory=list)


@dataclass
class DeleteHousingShareOutput:
    listing_id: UUID
    warnings: list[str] = field(default_factory=list)


class ListingLifecycleManager:
    """
    Creates, reads, updates, deletes and lists housing shares.

    Stateless: safe to call concurrently. Same-id races are settled by the
    record store (last write wins); no in-process locking is done.
    """

    def __init__(
        self,
        repository: HousingShareRepository,
        media: MediaOrchestrator,
        queries: QueryCompositor,
        *,
        store_timeout: float = 10.0,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._repository = repository
        self._media = media
        self._queries = queries
        self._store_timeout = store_timeout
        self._clock = clock

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    async def create(
        self,
        owner_id: str,
        fields: Mapping[str, Any],
        files: Sequence[MediaFile] = (),
        timeout: float | None = None,
    ) -> HousingShare:
        logger.info("creating_housing_share", owner_id=owner_id, photos=len(files))

        normalized = normalize_listing_fields(fields)
        validate(normalized)

        photos = await self._media.attach(files, timeout)
        listing = HousingShare.create(
            owner_id=owner_id, fields=normalized, photos=photos, now=self._clock()
        )

        try:
            await self._store_call(self._repository.add(listing), timeout)
        except StorageError as exc:
            raise await self._compensate(exc, photos, listing.id) from exc

        logger.info("housing_share_created", listing_id=str(listing.id), owner_id=owner_id)
        return listing

    async def update(
        self,
        owner_id: str,
        listing_id: UUID,
        fields: Mapping[str, Any],
        files: Sequence[MediaFile] = (),
        timeout: float | None = None,
    ) -> UpdateHousingShareOutput:
        logger.info("updating_housing_share", listing_id=str(listing_id), photos=len(files))

        existing = await self._load_owned(owner_id, listing_id, timeout)
        normalized = normalize_listing_fields(fields)
        validate(normalized, existing=existing)

        updated = existing.with_changes(normalized, now=self._clock())

        new_photos: list[MediaRef] | None = None
        if files:
            new_photos = await self._media.attach(files, timeout)
            updated = replace(updated, photos=new_photos)

        try:
            await self._store_call(self._repository.update(updated), timeout)
        except StorageError as exc:
            raise await self._compensate(exc, new_photos or [], listing_id) from exc

        warnings: list[str] = []
        if new_photos is not None and existing.photos:
            warnings = await self._media.release(existing.photos, timeout)

        logger.info(
            "housing_share_updated",
            listing_id=str(listing_id),
            replaced_photos=new_photos is not None,
            warnings=len(warnings),
        )
        return UpdateHousingShareOutput(listing=updated, warnings=warnings)

    async def delete(
        self, owner_id: str, listing_id: UUID, timeout: float | None = None
    ) -> DeleteHousingShareOutput:
        logger.info("deleting_housing_share", listing_id=str(listing_id))

        existing = await self._load_owned(owner_id, listing_id, timeout)

        removed = await self._store_call(self._repository.delete(listing_id), timeout)
        if not removed:
            # Deleted concurrently between load and delete
            logger.info("housing_share_already_deleted", listing_id=str(listing_id))

        warnings = await self._media.release(existing.photos, timeout)

        logger.info("housing_share_deleted", listing_id=str(listing_id), warnings=len(warnings))
        return DeleteHousingShareOutput(listing_id=listing_id, warnings=warnings)

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def get_by_id(self, listing_id: UUID, timeout: float | None = None) -> HousingShare:
        listing = await self._store_call(self._repository.get_by_id(listing_id), timeout)
        if listing is None:
            raise NotFoundError(listing_id)
        return listing

    async def list(
        self,
        filters: Mapping[str, Any],
        page: int | None = None,
        page_size: int | None = None,
        timeout: float | None = None,
    ) -> ListingPage:
        return await self._queries.list(filters, page, page_size, timeout=timeout)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    async def _load_owned(
        self, owner_id: str, listing_id: UUID, timeout: float | None
    ) -> HousingShare:
        listing = await self.get_by_id(listing_id, timeout)
        if not listing.is_owned_by(owner_id):
            logger.warning(
                "housing_share_ownership_mismatch",
                listing_id=str(listing_id),
                owner_id=owner_id,
            )
            raise AuthorizationError(listing_id, owner_id)
        return listing

    async def _store_call(self, call: Awaitable[T], timeout: float | None) -> T:
        deadline = self._store_timeout if timeout is None else timeout
        try:
            return await asyncio.wait_for(call, deadline)
        except asyncio.TimeoutError as exc:
            logger.error("record_store_timed_out", timeout=deadline)
            raise StorageError("Record store timed out") from exc
        except StorageError:
            raise
        except Exception as exc:
            logger.exception("record_store_failed")
            raise StorageError(f"Record store failed: {exc}") from exc

    async def _compensate(
        self, error: StorageError, uploaded: Sequence[MediaRef], listing_id: UUID
    ) -> StorageError:
        """Roll back photos uploaded for a write whose record commit failed."""
        outcome = await self._media.rollback(uploaded)
        logger.error(
            "housing_share_commit_failed",
            listing_id=str(listing_id),
            error=error.message,
            rolled_back=len(outcome.deleted_ids),
            orphaned=outcome.orphaned_ids,
        )
        return StorageError(error.message, rollback=outcome)
