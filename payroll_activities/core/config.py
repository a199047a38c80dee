import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

BASE_DIR = Path(__file__).resolve().parent.parent.parent


class Settings(BaseSettings):
    env: str = Field(default="dev", description="Deployment environment")
    log_level: str = "INFO"
    log_format: Literal["json", "console"] = "json"
    sentry_dsn: str | None = Field(default=None, description="Sentry DSN for error monitoring")
    reference_cache_ttl_seconds: float = Field(
        default=24 * 60 * 60,
        description="How long cached jobs, pay codes and holidays may be served before a reload",
    )
    leave_default_hours: float = Field(default=8.0, description="Hours used to price one day of leave")
    data_path: Path = Field(default=Path("data/store.json"), description="JSON store used by the CLI")

    model_config = SettingsConfigDict(env_prefix="PAYROLL_", extra="ignore")

    @field_validator("log_level", mode="before")
    @classmethod
    def normalise_level(cls, value: str) -> str:
        return str(value).strip().upper()

    @field_validator("reference_cache_ttl_seconds")
    @classmethod
    def non_negative_ttl(cls, value: float) -> float:
        if value < 0:
            raise ValueError("reference_cache_ttl_seconds must be >= 0")
        return value


@lru_cache
def get_settings() -> Settings:
    return Settings(_env_file=get_settings_env_file())


def get_settings_env_file() -> str | None:
    """Resolve environment-specific env file if it exists."""
    env = os.getenv("PAYROLL_ENV", "dev")
    env_file = BASE_DIR / f".env.{env}"
    default_file = BASE_DIR / ".env"
    if env_file.exists():
        return str(env_file)
    if default_file.exists():
        return str(default_file)
    return None


settings = get_settings()
