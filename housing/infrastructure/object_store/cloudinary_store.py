"""Cloudinary object store, backed by the official SDK."""
import asyncio
import io
from typing import Any

import cloudinary.exceptions
import cloudinary.uploader
import structlog

from housing.application.interfaces.object_store import ObjectStore
from housing.config import settings
from housing.domain.entities.housing_share import MediaFile, MediaRef
from housing.domain.errors import ObjectStoreError

logger = structlog.get_logger(__name__)


class CloudinaryObjectStore(ObjectStore):
    """Uploads and destroys images through ``cloudinary.uploader``."""

    def __init__(
        self,
        cloud_name: str = settings.cloudinary_cloud_name,
        api_key: str = settings.cloudinary_api_key,
        api_secret: str = settings.cloudinary_api_secret,
        folder: str = settings.cloudinary_folder,
        timeout: float = settings.upload_timeout_seconds,
    ) -> None:
        if not cloud_name or not api_key or not api_secret:
            raise ObjectStoreError("Cloudinary credentials are not configured")
        self._folder = folder
        # Passed on every call instead of cloudinary.config(), so instances stay independent
        self._options: dict[str, Any] = {
            "cloud_name": cloud_name,
            "api_key": api_key,
            "api_secret": api_secret,
            "resource_type": "image",
            "timeout": timeout,
        }

    async def upload(self, file: MediaFile) -> MediaRef:
        try:
            result = await asyncio.to_thread(
                cloudinary.uploader.upload,
                io.BytesIO(file.content),
                folder=self._folder,
                filename=file.filename,
                **self._options,
            )
        except cloudinary.exceptions.Error as exc:
            logger.error("cloudinary_upload_failed", filename=file.filename, error=str(exc))
            raise ObjectStoreError(f"Cloudinary upload failed: {exc}") from exc

        try:
            ref = MediaRef(url=result["secure_url"], deletable_id=result["public_id"])
        except KeyError as exc:
            raise ObjectStoreError(f"Cloudinary upload response missing {exc}") from exc

        logger.info("cloudinary_uploaded", public_id=ref.deletable_id)
        return ref

    async def delete(self, deletable_id: str) -> None:
        """Destroying an id Cloudinary no longer knows ("not found") is a success."""
        try:
            result = await asyncio.to_thread(
                cloudinary.uploader.destroy, deletable_id, invalidate=True, **self._options
            )
        except cloudinary.exceptions.Error as exc:
            logger.error("cloudinary_destroy_failed", public_id=deletable_id, error=str(exc))
            raise ObjectStoreError(f"Cloudinary destroy failed: {exc}") from exc

        outcome = result.get("result")
        if outcome not in ("ok", "not found"):
            raise ObjectStoreError(f"Cloudinary could not destroy {deletable_id}: {outcome}")
        logger.info("cloudinary_destroyed", public_id=deletable_id, result=outcome)
