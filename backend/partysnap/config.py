from __future__ import annotations
import os
from pydantic import BaseModel

class Settings(BaseModel):
    environment: str = os.getenv("ENVIRONMENT", "dev")
    app_name: str = os.getenv("APP_NAME", "partysnap-api")
    app_display_name: str = os.getenv("APP_DISPLAY_NAME", "PartySnap")
    app_version: str = os.getenv("APP_VERSION", "0.1.0")
    git_sha: str = os.getenv("GIT_SHA", "dev")
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "8000"))
    cors_origins: list[str] = os.getenv("CORS_ORIGINS", "*").split(",")
    database_url: str = os.getenv("DATABASE_URL", "postgresql+asyncpg://postgres:postgres@db:5432/partysnap_dev")
    s3_endpoint: str = os.getenv("S3_ENDPOINT", "http://minio:9000")
    s3_access_key: str = os.getenv("S3_ACCESS_KEY", "minioadmin")
    s3_secret_key: str = os.getenv("S3_SECRET_KEY", "minioadmin")
    s3_bucket_media: str = os.getenv("S3_BUCKET_MEDIA", "partysnap-event-media-dev")
    # Base used to build public photo URLs; falls back to the S3 endpoint
    s3_public_url: str = os.getenv("S3_PUBLIC_URL", "")

    # Host identity tokens
    jwt_secret: str = os.getenv("JWT_SECRET", "dev-secret-change-me")
    access_ttl_min: int = int(os.getenv("ACCESS_TTL_MIN", "60"))

    # Codes
    join_code_length: int = int(os.getenv("JOIN_CODE_LENGTH", "6"))
    access_code_length: int = int(os.getenv("ACCESS_CODE_LENGTH", "6"))
    # Codes with this prefix are accepted without being issued first. Empty disables it.
    access_code_bypass_prefix: str = os.getenv("ACCESS_CODE_BYPASS_PREFIX", "")

    # Photo pre-processing
    max_upload_bytes: int = int(os.getenv("MAX_UPLOAD_BYTES", str(15 * 1024 * 1024)))
    compression_quality: int = int(os.getenv("COMPRESSION_QUALITY", "80"))
    compression_max_width: int = int(os.getenv("COMPRESSION_MAX_WIDTH", "1200"))

settings = Settings()
