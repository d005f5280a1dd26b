"""Settings for the notification center client and its headless watcher."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, SecretStr, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ClientSettings(BaseSettings):
    """Client configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    api_url: str = Field(default="http://localhost:8000/api", alias="NOTIFICATIONS_API_URL")
    api_token: SecretStr | None = Field(default=None, alias="NOTIFICATIONS_API_TOKEN")
    poll_interval_seconds: float = Field(default=60.0, alias="NOTIFICATIONS_POLL_INTERVAL_SECONDS")
    request_timeout_seconds: float = Field(
        default=10.0,
        alias="NOTIFICATIONS_REQUEST_TIMEOUT_SECONDS",
    )
    page_size: int = Field(default=20, alias="NOTIFICATIONS_PAGE_SIZE")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    @field_validator("api_url")
    @classmethod
    def _normalize_url(cls, value: str) -> str:
        trimmed = value.strip().rstrip("/")
        if not trimmed.startswith(("http://", "https://")):
            raise ValueError("NOTIFICATIONS_API_URL must be an http(s) URL.")
        return trimmed

    @field_validator("poll_interval_seconds", "request_timeout_seconds", "page_size")
    @classmethod
    def _validate_positive(cls, value: float, info: ValidationInfo) -> float:
        if value <= 0:
            field = (info.field_name or "value").upper()
            raise ValueError(f"{field} must be greater than zero.")
        return value

    def bearer_token(self) -> str | None:
        if self.api_token is None:
            return None
        token = self.api_token.get_secret_value().strip()
        return token or None


@lru_cache
def get_client_settings() -> ClientSettings:
    return ClientSettings()


__all__ = ["ClientSettings", "get_client_settings"]
