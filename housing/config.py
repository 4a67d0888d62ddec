from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Record store
    database_url: str = "sqlite+aiosqlite:///./housing.db"

    # Object store: "cloudinary" or "local"
    object_store_backend: str = "local"
    cloudinary_cloud_name: str = ""
    cloudinary_api_key: str = ""
    cloudinary_api_secret: str = ""
    cloudinary_folder: str = "housing-shares"
    local_media_dir: str = "./uploads"
    local_media_base_url: str = "http://localhost:8000/media"

    # Identity collaborator
    jwt_secret: str = "change-me"
    jwt_algorithm: str = "HS256"
    writer_role: str = "student"

    log_level: str = "INFO"

    # Deadlines (seconds); rollback is kept shorter than the calls it undoes
    store_timeout_seconds: float = 10.0
    upload_timeout_seconds: float = 30.0
    delete_timeout_seconds: float = 10.0
    rollback_timeout_seconds: float = 5.0

    # Pagination
    default_page_size: int = 10
    max_page_size: int = 100

    # Upload limits
    max_photos: int = 5
    max_photo_bytes: int = 5 * 1024 * 1024

    # Create rate limit, per client address
    create_rate_limit: int = 5
    create_rate_window_seconds: int = 60 * 60


settings = Settings()
