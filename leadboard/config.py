from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from pydantic import AnyHttpUrl, Field, SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from leadboard.core.exceptions import ConfigurationError

REQUIRED_ENV_VARS = ("SUPABASE_URL", "SUPABASE_ANON_KEY")


class Settings(BaseSettings):
    """Application settings loaded from environment variables with validation."""

    model_config = SettingsConfigDict(
        env_file=(str(Path(__file__).resolve().parents[1] / ".env"), ".env", ".env.local"),
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    app_name: str = Field(default="Leadboard CRM", alias="APP_NAME")
    app_env: Literal["development", "staging", "production", "test"] = Field(
        default="production",
        alias="APP_ENV",
    )
    app_debug: bool = Field(default=False, alias="APP_DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    api_v1_prefix: str = Field(default="/api/v1", alias="API_V1_PREFIX")

    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:5173"],
        alias="CORS_ORIGINS",
    )

    # No defaults: the service cannot run without its backend.
    supabase_url: AnyHttpUrl = Field(alias="SUPABASE_URL")
    supabase_anon_key: SecretStr = Field(alias="SUPABASE_ANON_KEY")
    supabase_schema: str = Field(default="public", alias="SUPABASE_SCHEMA")

    http_timeout_seconds: float = Field(default=30.0, gt=0, le=300, alias="HTTP_TIMEOUT_SECONDS")
    realtime_events_per_second: int = Field(default=10, ge=1, le=1000, alias="REALTIME_EVENTS_PER_SECOND")
    realtime_heartbeat_seconds: float = Field(default=30.0, gt=0, le=300, alias="REALTIME_HEARTBEAT_SECONDS")
    sync_strategy: Literal["refetch", "patch"] = Field(default="refetch", alias="SYNC_STRATEGY")
    page_session_idle_seconds: float = Field(default=900.0, gt=0, alias="PAGE_SESSION_IDLE_SECONDS")
    page_session_sweep_seconds: float = Field(default=60.0, gt=0, le=3600, alias="PAGE_SESSION_SWEEP_SECONDS")

    database_url: Optional[str] = Field(default=None, alias="DATABASE_URL")

    admin_user_id: str = Field(default="550e8400-e29b-41d4-a716-446655440001", alias="ADMIN_USER_ID")
    admin_username: str = Field(default="admin", alias="ADMIN_USERNAME")
    admin_full_name: str = Field(default="Super Admin", alias="ADMIN_FULL_NAME")
    admin_whatsapp: str = Field(default="6281234567890", alias="ADMIN_WHATSAPP")
    admin_avatar: str = Field(default="https://i.pravatar.cc/150?u=admin", alias="ADMIN_AVATAR")

    @field_validator("supabase_anon_key", mode="before")
    @classmethod
    def validate_anon_key(cls, value: str | SecretStr) -> str | SecretStr:
        """Reject blank keys so an empty variable counts as missing."""
        raw = value.get_secret_value() if isinstance(value, SecretStr) else value
        if raw is None or not str(raw).strip():
            raise ValueError("SUPABASE_ANON_KEY must not be empty.")
        return value

    @field_validator("api_v1_prefix")
    @classmethod
    def validate_api_prefix(cls, value: str) -> str:
        """Ensure the API prefix starts with a slash and has no trailing slash."""
        normalized = value.strip()
        if not normalized.startswith("/"):
            raise ValueError("API_V1_PREFIX must start with '/'.")
        if len(normalized) > 1 and normalized.endswith("/"):
            normalized = normalized.rstrip("/")
        return normalized

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, value: str | list[str]) -> list[str]:
        """Support comma-separated CORS origins from environment variables."""
        if isinstance(value, str):
            if not value.strip():
                return []
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @field_validator("database_url")
    @classmethod
    def validate_database_url(cls, value: Optional[str]) -> Optional[str]:
        """Validate database URL is a PostgreSQL SQLAlchemy-compatible connection string."""
        if value is None or not value.strip():
            return None
        lowered = value.lower()
        if not (lowered.startswith("postgresql://") or lowered.startswith("postgresql+psycopg2://")):
            raise ValueError("DATABASE_URL must start with postgresql:// or postgresql+psycopg2://")
        return value

    @property
    def base_url(self) -> str:
        return str(self.supabase_url).rstrip("/")

    @property
    def realtime_url(self) -> str:
        """Websocket endpoint of the realtime service."""
        if self.base_url.startswith("https://"):
            host = "wss://" + self.base_url[len("https://"):]
        else:
            host = "ws://" + self.base_url[len("http://"):]
        return f"{host}/realtime/v1/websocket"


def load_settings(**overrides) -> Settings:
    """Build settings, turning missing backend variables into a ConfigurationError."""
    try:
        return Settings(**overrides)
    except ValidationError as exc:
        missing = sorted(
            {
                str(error["loc"][0])
                for error in exc.errors()
                if error.get("loc") and str(error["loc"][0]) in REQUIRED_ENV_VARS
            }
        )
        if missing:
            raise ConfigurationError(
                "Missing Supabase environment variables: "
                + ", ".join(missing)
                + ". Set them in the environment or a .env.local file."
            ) from exc
        raise


@lru_cache
def get_settings() -> Settings:
    """Return a cached settings instance."""
    return load_settings()
