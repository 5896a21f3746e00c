"""
Application configuration with environment-based settings.
All configuration is explicit, validated, and logged at startup.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have sensible defaults for development but require
    explicit configuration in production environments.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_ignore_empty=True,
    )

    # Application
    app_name: str = Field(default="HMS Engine", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment environment"
    )
    debug: bool = Field(default=False, description="Enable debug mode")

    # Patient numbering
    numbering_store: Literal["memory", "json", "arango"] = Field(
        default="json",
        description="Backend holding the patient numbering settings"
    )
    numbering_settings_path: Path = Field(
        default=Path.home() / ".hms" / "patient_numbering.json",
        description="JSON file used by the json numbering store"
    )
    sequence_padding: int = Field(
        default=5, ge=1, le=12, description="Zero-padding width of {sequence}"
    )

    # ArangoDB (arango numbering store)
    arango_host: str = Field(
        default="http://localhost:8529",
        description="ArangoDB host URL"
    )
    arango_username: str = Field(default="root", description="ArangoDB username")
    arango_password: str = Field(default="", description="ArangoDB password")
    arango_database: str = Field(default="hms", description="ArangoDB database name")
    arango_settings_collection: str = Field(
        default="settings",
        description="Collection holding the numbering settings document"
    )

    # Lab summarizer
    lab_phrase_selection: Literal["first", "random"] = Field(
        default="first",
        description="How summary phrases are picked from a synonym set"
    )
    lab_summary_max_lines: int = Field(
        default=3, ge=1, description="Maximum number of summary lines"
    )

    # Billing anomaly detection
    billing_price_ratio_threshold: float = Field(
        default=1.5, gt=1.0, description="Unit price / average price ratio that flags an item"
    )
    billing_quantity_threshold: int = Field(
        default=3, ge=0, description="Quantity above which an item is scored"
    )
    billing_quantity_flag_score: float = Field(
        default=0.3, ge=0.0, le=1.0, description="Quantity score needed to flag an item"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: Literal["json", "console"] = Field(
        default="console",
        description="Log output format"
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    def get_safe_config_dict(self) -> dict:
        """Return configuration dict with secrets redacted for logging."""
        config = self.model_dump()
        # Redact sensitive values
        if config.get("arango_password"):
            config["arango_password"] = "***REDACTED***"
        return config


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Settings are loaded once and cached for the application lifetime.
    Pass explicit values to the engine constructors for testability.
    """
    return Settings()
