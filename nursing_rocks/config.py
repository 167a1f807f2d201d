import os
from dotenv import load_dotenv

# Load .env file if it exists
load_dotenv()


class Settings:
    # -------------------------------------------------------
    # Project
    # -------------------------------------------------------
    PROJECT_NAME: str = "Nursing Rocks API"
    ENV: str = os.getenv("ENV", "dev")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # -------------------------------------------------------
    # Database
    # -------------------------------------------------------
    DATABASE_URL: str = os.getenv(
        "DATABASE_URL",
        "sqlite:///./nursing_rocks.db"
    )

    # Hosted Postgres uses postgres:// but SQLAlchemy needs postgresql://
    if DATABASE_URL.startswith("postgres://"):
        DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql://", 1)

    # -------------------------------------------------------
    # Authentication / JWT
    # -------------------------------------------------------
    SECRET_KEY: str = os.getenv(
        "SECRET_KEY",
        "nursingrockslocalkey123"   # Only used for local dev
    )
    ALGORITHM: str = "HS256"

    # 1 day token expiry by default
    ACCESS_TOKEN_EXPIRE_MINUTES: int = int(
        os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 24)
    )

    # Bootstrap admin, created on startup when both are set
    ADMIN_EMAIL: str = os.getenv("ADMIN_EMAIL", "")
    ADMIN_PASSWORD: str = os.getenv("ADMIN_PASSWORD", "")

    # Second factor checked before edit mode is unlocked
    ADMIN_PIN: str = os.getenv("ADMIN_PIN", "1234")

    # -------------------------------------------------------
    # Public base URL (used to build absolute media URLs)
    # -------------------------------------------------------
    BASE_URL: str = os.getenv(
        "BASE_URL",
        "http://127.0.0.1:8000"
    )

    # -------------------------------------------------------
    # Storage Configuration
    # -------------------------------------------------------
    STORAGE_BACKEND: str = os.getenv("STORAGE_BACKEND", "local")

    # Local media folder
    LOCAL_MEDIA_PATH: str = os.getenv(
        "LOCAL_MEDIA_PATH",
        "./media"   # Default for dev
    )

    SUPABASE_URL: str = os.getenv("SUPABASE_URL", "")
    SUPABASE_KEY: str = os.getenv("SUPABASE_KEY", "")
    SUPABASE_BUCKET: str = os.getenv("SUPABASE_BUCKET", "media")

    # -------------------------------------------------------
    # Admin editing
    # -------------------------------------------------------
    PLACEHOLDER_IMAGE_URL: str = os.getenv(
        "PLACEHOLDER_IMAGE_URL",
        "/media/placeholders/placeholder.jpg"
    )

    # -------------------------------------------------------
    # Videos
    # -------------------------------------------------------
    VIDEO_PROVIDER: str = os.getenv("VIDEO_PROVIDER", "local")
    VIDEO_CDN_BASE_URL: str = os.getenv("VIDEO_CDN_BASE_URL", "").rstrip("/")

    # Backblaze B2 (S3 compatible)
    B2_BUCKET_NAME: str = os.getenv("B2_BUCKET_NAME", "")
    B2_ENDPOINT_URL: str = os.getenv("B2_ENDPOINT_URL", "")
    B2_KEY_ID: str = os.getenv("B2_KEY_ID", "")
    B2_APPLICATION_KEY: str = os.getenv("B2_APPLICATION_KEY", "")
    B2_VIDEO_PREFIX: str = os.getenv("B2_VIDEO_PREFIX", "videos/")

    # Poster frames are encoded as JPEG at this quality (0-100)
    THUMBNAIL_JPEG_QUALITY: int = int(os.getenv("THUMBNAIL_JPEG_QUALITY", 85))


# Single instance that is imported everywhere
settings = Settings()
