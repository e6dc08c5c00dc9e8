"""Application configuration.

Loads settings from environment variables with sensible defaults.
"""

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # API
    api_version: str = "0.1.0"
    debug: bool = False

    # Database
    database_url: str = "sqlite+aiosqlite:///./products.db"
    db_timeout_seconds: float = 10.0
    db_connect_attempts: int = 3
    db_connect_backoff_seconds: float = 0.5
    db_connect_backoff_max_seconds: float = 3.0

    # Admin authentication
    admin_password: str = ""
    session_secret: str = "dev-session-secret-change-in-production"
    session_ttl_minutes: int = 30

    # Image uploads
    max_upload_size: int = 5 * 1024 * 1024
    allowed_image_formats: list[str] = ["jpeg", "png", "webp"]
    image_key_prefix: str = "products"

    # Image processing
    image_processing_enabled: bool = True
    image_min_dimension: int = 10
    image_max_dimension: int = 10000
    image_target_size: int = 1200
    image_jpeg_quality: int = 80

    # Image storage
    image_storage_backend: str = "local"
    image_storage_dir: str = "./media"
    image_public_base_url: str = "/media"
    blob_api_url: str = ""
    blob_public_base_url: str = ""
    blob_read_write_token: str = ""
    blob_timeout_seconds: float = 15.0

    # Public listing
    listing_cache_ttl_seconds: float = 60.0

    # Logging
    log_level: str = "INFO"
    log_json: bool = True

    class Config:
        """Pydantic configuration."""

        env_file = ".env"
        env_file_encoding = "utf-8"

    def validate_runtime(self) -> list[str]:
        """Check settings that cannot be expressed as field types.

        Returns:
            List of human-readable configuration problems (empty when valid).
        """
        problems: list[str] = []

        if not self.admin_password:
            problems.append("ADMIN_PASSWORD is not set")
        elif len(self.admin_password) < 4:
            problems.append("ADMIN_PASSWORD must be at least 4 characters long")

        if self.image_storage_backend not in ("local", "blob"):
            problems.append(
                f"IMAGE_STORAGE_BACKEND must be 'local' or 'blob', got '{self.image_storage_backend}'"
            )
        elif self.image_storage_backend == "blob":
            if not self.blob_read_write_token:
                problems.append("BLOB_READ_WRITE_TOKEN is required for the blob backend")
            if not self.blob_api_url:
                problems.append("BLOB_API_URL is required for the blob backend")

        if self.max_upload_size <= 0:
            problems.append("MAX_UPLOAD_SIZE must be positive")

        if self.image_processing_enabled:
            if not 0 < self.image_min_dimension <= self.image_max_dimension:
                problems.append(
                    "IMAGE_MIN_DIMENSION must be positive and not above IMAGE_MAX_DIMENSION"
                )
            if self.image_target_size <= 0:
                problems.append("IMAGE_TARGET_SIZE must be positive")
            if not 1 <= self.image_jpeg_quality <= 95:
                problems.append("IMAGE_JPEG_QUALITY must be between 1 and 95")

        return problems


settings = Settings()
