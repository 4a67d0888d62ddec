import asyncio
import tempfile
import uuid
from pathlib import Path

import structlog

from housing.application.interfaces.object_store import ObjectStore
from housing.domain.entities.housing_share import MediaFile, MediaRef
from housing.domain.errors import ObjectStoreError

logger = structlog.get_logger(__name__)


class LocalFileObjectStore(ObjectStore):
    """Local filesystem implementation of ObjectStore, for development."""

    def __init__(self, base_path: str, base_url: str) -> None:
        self.base_path = Path(base_path)
        self.base_path.mkdir(parents=True, exist_ok=True)
        self._base_url = base_url.rstrip("/")

    def _path_for(self, deletable_id: str) -> Path:
        """Resolve an object id within base_path, rejecting path traversal attempts."""
        safe_name = Path(deletable_id).name
        if not safe_name or safe_name != deletable_id:
            raise ObjectStoreError(f"Invalid object id: {deletable_id}")
        return self.base_path / safe_name

    def _write(self, target: Path, content: bytes) -> None:
        # Atomic write: write to temp file then rename
        fd, tmp_path = tempfile.mkstemp(dir=self.base_path)
        try:
            with open(fd, "wb") as f:
                f.write(content)
            Path(tmp_path).rename(target)
        except Exception:
            Path(tmp_path).unlink(missing_ok=True)
            raise

    async def upload(self, file: MediaFile) -> MediaRef:
        deletable_id = f"{uuid.uuid4().hex}{Path(file.filename).suffix.lower()}"
        target = self._path_for(deletable_id)
        try:
            await asyncio.to_thread(self._write, target, file.content)
        except OSError as exc:
            raise ObjectStoreError(f"Failed to store {file.filename}: {exc}") from exc

        logger.debug("local_media_stored", deletable_id=deletable_id, size=len(file.content))
        return MediaRef(url=f"{self._base_url}/{deletable_id}", deletable_id=deletable_id)

    async def delete(self, deletable_id: str) -> None:
        target = self._path_for(deletable_id)
        try:
            await asyncio.to_thread(target.unlink, missing_ok=True)
        except OSError as exc:
            raise ObjectStoreError(f"Failed to delete {deletable_id}: {exc}") from exc
        logger.debug("local_media_deleted", deletable_id=deletable_id)
