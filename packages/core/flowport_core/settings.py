"""Application settings using pydantic-settings."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # API settings
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    debug: bool = False
    log_level: str = Field(
        default="INFO",
        description="Root log level for the API process",
    )
    cors_allowed_origins: str = Field(
        default="http://localhost:5173,http://localhost:8000",
        description="Comma-separated list of allowed CORS origins",
    )

    # Parsing
    default_parser: str = Field(
        default="jenkins",
        description="Parser key used when a request does not name one (ucd, jenkins, github_actions, yaml)",
    )
    upload_max_payload_mb: int = Field(
        default=25,
        description="Maximum combined size of uploaded files per request",
    )

    # Archive extraction
    archive_max_members: int = Field(
        default=2000,
        description="Maximum number of file members read from one archive",
    )
    archive_max_member_bytes: int = Field(
        default=5 * 1024 * 1024,
        description="Members larger than this are skipped during extraction",
    )


# Singleton instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get cached settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings
