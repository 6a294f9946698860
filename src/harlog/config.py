"""Configuration management with pydantic-settings."""

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class HarlogSettings(BaseSettings):
    """harlog settings loaded from environment variables.

    All settings use the HARLOG_ prefix for environment variables.
    """

    # Output configuration
    output_dir: Path = Field(
        default=Path("har"),
        description="Directory that captured HAR files are written to",
    )
    creator_name: str = Field(
        default="harlog",
        description="Creator name recorded in every HAR document",
    )
    creator_version: str = Field(
        default="1.0",
        description="Creator version recorded in every HAR document",
    )

    # Logging configuration
    log_level: str = Field(default="WARNING", description="Logging level")
    log_format: str = Field(
        default="console",
        description="Log renderer: console or json",
    )

    model_config = SettingsConfigDict(
        env_prefix="HARLOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def json_logs(self) -> bool:
        """Return True if logs should be rendered as JSON."""
        return self.log_format.lower() == "json"


# Global settings instance
_settings: HarlogSettings | None = None


def get_settings() -> HarlogSettings:
    """Get or create the global settings instance."""
    global _settings
    if _settings is None:
        _settings = HarlogSettings()
    return _settings


def reset_settings() -> None:
    """Reset the global settings instance (useful for testing)."""
    global _settings
    _settings = None
