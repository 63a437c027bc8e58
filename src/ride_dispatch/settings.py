from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class LoggingSettings(BaseSettings):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["text", "json"] = "text"
    environment: str = "development"

    model_config = SettingsConfigDict(env_prefix="LOG_")


class DispatchSettings(BaseSettings):
    """Backend selection and request defaults for the ride service."""

    metrics_backend: Literal["memory", "redis"] = "memory"
    store_backend: Literal["memory", "sql"] = "memory"
    relay_events_to_redis: bool = Field(
        default=False,
        description="Mirror every published event onto a Redis channel of the same name",
    )
    default_tier: Literal["economy", "premium", "luxury"] = "economy"
    default_payment_method: Literal["card", "cash", "wallet"] = "card"

    model_config = SettingsConfigDict(env_prefix="DISPATCH_")


class RedisSettings(BaseSettings):
    host: str = "localhost"
    port: int = Field(default=6379, ge=1, le=65535)
    db: int = Field(default=0, ge=0)
    password: str | None = None
    ssl: bool = False

    model_config = SettingsConfigDict(env_prefix="REDIS_")


class DatabaseSettings(BaseSettings):
    url: str = "sqlite:///./ride_dispatch.db"
    echo: bool = False

    model_config = SettingsConfigDict(env_prefix="DATABASE_")

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        if not v.startswith(("sqlite:", "postgresql")):
            raise ValueError("Database URL must be a sqlite: or postgresql URL")
        return v


class Settings(BaseSettings):
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    dispatch: DispatchSettings = Field(default_factory=DispatchSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)

    model_config = SettingsConfigDict(
        env_nested_delimiter="__",
        case_sensitive=False,
    )


def get_settings() -> Settings:
    """Load and validate settings from environment variables."""
    return Settings()
