"""Pydantic models for database configuration."""

from pydantic import BaseModel, Field


class DatabaseProfile(BaseModel):
    """Connection settings for one runtime mode (development, test, ...)."""

    url: str
    description: str = ""
    db_password: str | None = None  # For [YOUR-PASSWORD] placeholder substitution
    pool_size: int = Field(default=5, ge=1)
    max_overflow: int = Field(default=10, ge=0)


class DatabaseConfig(BaseModel):
    """Complete database configuration from db.toml."""

    profiles: dict[str, DatabaseProfile]
    timezone: str = "UTC"
    schema_name: str = "public"
