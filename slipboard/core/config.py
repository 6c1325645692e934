from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    # Unset means storage is not configured; requests fail fast with 503.
    database_url: Optional[str] = Field(None, alias="DATABASE_URL")

    jwt_secret_key: str = Field("change-me", alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field("HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(60, alias="ACCESS_TOKEN_EXPIRE_MINUTES")

    # Upload ceilings for opaque form blobs (decoded bytes)
    max_signed_form_bytes: int = Field(5 * 1024 * 1024, alias="MAX_SIGNED_FORM_BYTES")
    max_event_form_bytes: int = Field(7 * 1024 * 1024, alias="MAX_EVENT_FORM_BYTES")
    max_slots_per_request: int = Field(100, alias="MAX_SLOTS_PER_REQUEST")

    log_level: str = Field("INFO", alias="LOG_LEVEL")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()
