"""
Couples uploaded photo files with a listing's lifecycle.

A listing write touches two stores that share no transaction, so it runs as a
saga whose only compensating action is "delete what this write uploaded".
Uploads happen before the record is committed: a failure may leave transient
orphans in the object store, never a record pointing at missing media.
The orphan window is bounded by the rollback deadline; anything still alive
after it is logged with its id for manual cleanup.
"""
import asyncio
from collections.abc import Sequence

import structlog

from housing.application.interfaces.object_store import ObjectStore
from housing.domain.entities.housing_share import MediaFile, MediaRef
from housing.domain.errors import MediaError, RollbackOutcome

logger = structlog.get_logger(__name__)


def _describe(exc: BaseException) -> str:
    if isinstance(exc, asyncio.TimeoutError):
        return "timed out"
    return str(exc) or type(exc).__name__


class MediaOrchestrator:
    """
    Sequences uploads and deletes against an ObjectStore.

    Never sees listing records, only files and media references.
    """

    def __init__(
        self,
        object_store: ObjectStore,
        *,
        upload_timeout: float = 30.0,
        delete_timeout: float = 10.0,
        rollback_timeout: float = 5.0,
    ) -> None:
        self._store = object_store
        self._upload_timeout = upload_timeout
        self._delete_timeout = delete_timeout
        self._rollback_timeout = rollback_timeout

    async def attach(
        self, files: Sequence[MediaFile], timeout: float | None = None
    ) -> list[MediaRef]:
        """
        Upload every file and return their references in input order.

        All-or-nothing: if any upload fails or the deadline passes, whatever
        did upload is deleted again and a single MediaError is raised.
        """
        if not files:
            return []

        deadline = self._upload_timeout if timeout is None else timeout
        tasks = [asyncio.create_task(self._store.upload(f)) for f in files]
        _, pending = await asyncio.wait(tasks, timeout=deadline)

        for task in pending:
            task.cancel()
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)

        uploaded: list[MediaRef] = []
        failures: list[str] = []
        for file, task in zip(files, tasks):
            if task in pending:
                failures.append(f"{file.filename}: upload timed out")
                logger.warning("media_upload_cancelled", filename=file.filename)
                continue
            exc = task.exception()
            if exc is not None:
                failures.append(f"{file.filename}: {_describe(exc)}")
                logger.error("media_upload_failed", filename=file.filename, error=_describe(exc))
                continue
            uploaded.append(task.result())

        if not failures:
            logger.info("media_attached", count=len(uploaded))
            return uploaded

        outcome = await self.rollback(uploaded)
        raise MediaError(
            f"Failed to upload {len(failures)} of {len(files)} photos",
            failures=failures,
            rollback=outcome,
        )

    async def release(
        self, refs: Sequence[MediaRef], timeout: float | None = None
    ) -> list[str]:
        """
        Delete every referenced object. Never raises.

        Each failed deletion is logged and returned as a warning; the record
        stays the source of truth and stale media is cleanup debt.
        """
        deadline = self._delete_timeout if timeout is None else timeout
        results = await self._delete_all(refs, deadline)

        warnings: list[str] = []
        for ref, exc in results:
            if exc is None:
                continue
            warning = f"Failed to delete media {ref.deletable_id}: {_describe(exc)}"
            logger.warning("media_release_failed", deletable_id=ref.deletable_id, error=_describe(exc))
            warnings.append(warning)

        logger.info("media_released", count=len(refs), failed=len(warnings))
        return warnings

    async def rollback(self, refs: Sequence[MediaRef]) -> RollbackOutcome:
        """Compensating action: delete objects uploaded by a failed write."""
        if not refs:
            return RollbackOutcome()

        results = await self._delete_all(refs, self._rollback_timeout)
        deleted = [ref.deletable_id for ref, exc in results if exc is None]
        orphaned = [ref.deletable_id for ref, exc in results if exc is not None]

        for ref, exc in results:
            if exc is not None:
                logger.error(
                    "media_orphaned",
                    deletable_id=ref.deletable_id,
                    url=ref.url,
                    error=_describe(exc),
                )
        logger.info("media_rolled_back", deleted=len(deleted), orphaned=len(orphaned))
        return RollbackOutcome(deleted_ids=deleted, orphaned_ids=orphaned)

    async def _delete_all(
        self, refs: Sequence[MediaRef], timeout: float
    ) -> list[tuple[MediaRef, BaseException | None]]:
        results = await asyncio.gather(
            *(asyncio.wait_for(self._store.delete(ref.deletable_id), timeout) for ref in refs),
            return_exceptions=True,
        )
        outcomes: list[tuple[MediaRef, BaseException | None]] = []
        for ref, result in zip(refs, results):
            if isinstance(result, asyncio.CancelledError):
                raise result
            outcomes.append((ref, result if isinstance(result, BaseException) else None))
        return outcomes
