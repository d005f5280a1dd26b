"""
Configuration module for the notification server.

The Settings object centralizes environment-driven configuration with strict
typing and validation rules so that the rest of the codebase can rely on a
single source of truth.
"""

from __future__ import annotations

import json
from functools import lru_cache
from typing import Literal

from pydantic import (
    AliasChoices,
    Field,
    SecretStr,
    ValidationInfo,
    computed_field,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    project_name: str = Field(default="Social Scheduler Notifications", alias="PROJECT_NAME")
    environment: Literal["local", "test", "staging", "production"] = Field(
        default="local",
        alias="APP_ENV",
    )
    debug: bool = Field(default=False, alias="DEBUG")
    api_v1_prefix: str = Field(default="/api", alias="API_V1_PREFIX")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    database_url: str = Field(alias="DATABASE_URL")

    secret_key: SecretStr = Field(alias="SECRET_KEY")
    jwt_algorithm: Literal["HS256", "HS384", "HS512"] = Field(
        default="HS256",
        alias="JWT_ALGORITHM",
        validation_alias=AliasChoices("JWT_ALGORITHM", "ALGORITHM"),
    )
    access_token_expire_minutes: int = Field(default=60 * 24, alias="ACCESS_TOKEN_EXPIRE_MINUTES")

    raw_backend_cors_origins: str | None = Field(
        default=None,
        alias="BACKEND_CORS_ORIGINS",
        description="Comma-separated list or JSON array of allowed browser origins.",
    )
    max_request_bytes: int = Field(
        default=65_536,
        alias="MAX_REQUEST_BYTES",
        description="Upper bound for request bodies in bytes (default 64 KiB).",
    )

    notifications_page_size: int = Field(
        default=20,
        alias="NOTIFICATIONS_PAGE_SIZE",
        description="Default number of notifications returned by GET /notifications.",
    )
    notifications_max_page_size: int = Field(
        default=100,
        alias="NOTIFICATIONS_MAX_PAGE_SIZE",
        description="Upper bound accepted for the limit query parameter.",
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def _strip_string(cls, value: str | None, info: ValidationInfo) -> str:
        if value is None:
            field = (info.field_name or "value").upper()
            raise ValueError(f"{field} must be provided.")
        trimmed = value.strip()
        if not trimmed:
            field = (info.field_name or "value").upper()
            raise ValueError(f"{field} must not be empty.")
        return trimmed

    @field_validator("secret_key", mode="after")
    @classmethod
    def _validate_secret(cls, secret: SecretStr) -> SecretStr:
        if not secret.get_secret_value().strip():
            raise ValueError("SECRET_KEY must not be empty.")
        return secret

    @field_validator("access_token_expire_minutes", "max_request_bytes")
    @classmethod
    def _validate_positive(cls, value: int, info: ValidationInfo) -> int:
        if value <= 0:
            field = (info.field_name or "value").upper()
            raise ValueError(f"{field} must be a positive integer.")
        return value

    @field_validator("api_v1_prefix")
    @classmethod
    def _normalize_prefix(cls, value: str) -> str:
        candidate = value.strip().rstrip("/")
        if candidate and not candidate.startswith("/"):
            candidate = f"/{candidate}"
        return candidate

    @model_validator(mode="after")
    def _validate_page_sizes(self) -> "Settings":
        if self.notifications_page_size <= 0:
            raise ValueError("NOTIFICATIONS_PAGE_SIZE must be positive.")
        if self.notifications_page_size > self.notifications_max_page_size:
            raise ValueError(
                "NOTIFICATIONS_PAGE_SIZE must not exceed NOTIFICATIONS_MAX_PAGE_SIZE."
            )
        return self

    @computed_field(return_type=list[str])
    def cors_origins(self) -> list[str]:
        """Return the normalized list of allowed origins."""
        return self.parse_cors_origins(self.raw_backend_cors_origins)

    @staticmethod
    def parse_cors_origins(value: str | None) -> list[str]:
        """
        Normalize the BACKEND_CORS_ORIGINS value into a list of origins.

        Accepts either a comma-separated string or a JSON array string.
        """
        if value is None:
            return []
        normalized = value.strip()
        if not normalized:
            return []
        if normalized.startswith("["):
            try:
                parsed = json.loads(normalized)
                if isinstance(parsed, list):
                    return [
                        str(origin).strip().rstrip("/") for origin in parsed if str(origin).strip()
                    ]
            except json.JSONDecodeError:
                pass
        return [origin.strip().rstrip("/") for origin in normalized.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance so configuration is evaluated once."""
    # BaseSettings loads required values from env/.env during instantiation.
    return Settings()  # type: ignore[call-arg]


settings = get_settings()

__all__ = ["Settings", "get_settings", "settings"]
