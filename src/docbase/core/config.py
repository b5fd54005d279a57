"""Configuration management for DocBase.

This module uses Pydantic Settings to load and validate configuration from
environment variables and .env files. Configuration is loaded once and is
immutable for the lifetime of the process.
"""

from functools import lru_cache
from typing import Annotated, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Engine configuration settings.

    Settings are loaded from environment variables and .env files.
    All configuration values are validated at load time.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="DOCBASE_",
        case_sensitive=False,
        extra="ignore",
    )

    # Application Settings
    app_name: str = "DocBase"
    environment: Literal["development", "production", "testing"] = "development"
    debug: bool = False

    # Logging Settings
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "console"] = "json"

    # Relation Maintenance
    relation_inference_enabled: bool = Field(
        default=True,
        description="Infer unset relation targets from collection names before a save",
    )
    backlink_sync_enabled: bool = Field(
        default=True,
        description="Reconcile reciprocal relation fields after a save",
    )

    # Computed Fields
    formula_max_length: int = Field(
        default=2000,
        description="Formula expressions longer than this evaluate to null",
    )
    checkbox_truthy_values: Annotated[list[str], NoDecode] = Field(
        default=["true", "1", "yes", "on"],
        description="Strings recognised as checked when coercing into a checkbox field",
    )

    @field_validator("checkbox_truthy_values", mode="before")
    @classmethod
    def parse_truthy_values(cls, v: str | list[str]) -> list[str]:
        """Parse truthy values from a comma-separated string or list."""
        if isinstance(v, str):
            return [item.strip().lower() for item in v.split(",") if item.strip()]
        return [str(item).strip().lower() for item in v]

    @field_validator("formula_max_length")
    @classmethod
    def validate_formula_max_length(cls, v: int) -> int:
        """Reject non-positive formula length limits."""
        if v <= 0:
            raise ValueError("formula_max_length must be positive")
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_testing(self) -> bool:
        """Check if running in testing environment."""
        return self.environment == "testing"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    This function caches the settings instance to avoid reloading
    configuration on every call.

    Returns:
        Settings: Cached settings instance.
    """
    return Settings()
