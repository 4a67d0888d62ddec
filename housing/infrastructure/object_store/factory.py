from housing.application.interfaces.object_store import ObjectStore
from housing.config import Settings
from housing.infrastructure.object_store.cloudinary_store import CloudinaryObjectStore
from housing.infrastructure.object_store.local_store import LocalFileObjectStore


def create_object_store(config: Settings) -> ObjectStore:
    """Build the object store selected by ``object_store_backend``."""
    if config.object_store_backend == "cloudinary":
        return CloudinaryObjectStore(
            cloud_name=config.cloudinary_cloud_name,
            api_key=config.cloudinary_api_key,
            api_secret=config.cloudinary_api_secret,
            folder=config.cloudinary_folder,
            timeout=config.upload_timeout_seconds,
        )
    if config.object_store_backend == "local":
        return LocalFileObjectStore(config.local_media_dir, config.local_media_base_url)
    raise ValueError(f"Unknown object store backend: {config.object_store_backend}")
