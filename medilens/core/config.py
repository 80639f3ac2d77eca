# medilens/core/config.py
from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

SUPPORTED_UPLOAD_TYPES = [
    "application/pdf",
    "text/plain",
    "image/jpeg",
    "image/jpg",
    "image/png",
    "image/gif",
    "image/bmp",
    "image/webp",
]


class Settings(BaseSettings):
    PROJECT_NAME: str = "MediLens Backend"

    # Persistence; unset means an in-memory SQLite store
    DATABASE_URL: Optional[str] = None
    DEBUG_SQL: bool = False

    # AI webhook
    MEDILENS_WEBHOOK_URL: Optional[str] = None
    WEBHOOK_TIMEOUT_SECONDS: float = 30.0

    # Auth collaborator; unset means a fixed local development user
    AUTH_JWT_SECRET: Optional[str] = None
    AUTH_JWT_AUDIENCE: Optional[str] = "authenticated"
    AUTH_JWT_ALGORITHM: str = "HS256"

    # Uploads / extraction
    MAX_UPLOAD_SIZE_BYTES: int = 10 * 1024 * 1024
    ALLOWED_UPLOAD_TYPES: List[str] = SUPPORTED_UPLOAD_TYPES
    PDF_MIN_TEXT_LENGTH: int = 50
    OCR_LANGUAGE: str = "eng"

    LOG_LEVEL: str = "INFO"
    CORS_ORIGINS: List[str] = ["*"]

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
