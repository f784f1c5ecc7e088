from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from clientscan.services.traceparser.constants import CANARY_CLIENT_ID


class APISettings(BaseSettings):
    """API server configuration settings."""

    model_config = SettingsConfigDict(env_prefix="API_", env_file=".env", extra="ignore")

    host: str = Field(default="0.0.0.0", description="API server host")
    port: int = Field(default=8000, description="API server port")
    workers: int = Field(default=1, description="Number of worker processes")
    reload: bool = Field(default=False, description="Enable auto-reload on code changes")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Logging level",
    )


class SourceSettings(BaseSettings):
    """Broker log source configuration settings."""

    model_config = SettingsConfigDict(env_prefix="SOURCE_", env_file=".env", extra="ignore")

    location: str = Field(
        default="",
        description="S3 URI (s3://bucket/prefix/) or local directory holding the broker logs",
    )
    region: str | None = Field(default=None, description="AWS region of the log bucket")
    suffixes: list[str] = Field(
        default=[".log.gz"],
        description="File name suffixes of the broker log files to scan",
    )
    max_concurrency: int = Field(
        default=4,
        ge=1,
        description="Maximum number of log files fetched concurrently",
    )

    @property
    def is_configured(self) -> bool:
        return bool(self.location)

    @property
    def is_s3(self) -> bool:
        return self.location.startswith("s3://")

    @model_validator(mode="after")
    def validate_location(self) -> "SourceSettings":
        """Ensure an S3 location names a bucket."""
        if self.is_s3 and not self.location[len("s3://"):].split("/", 1)[0]:
            raise ValueError(f"Invalid S3 URI '{self.location}': missing bucket name")
        return self


class ScannerSettings(BaseSettings):
    """Client inventory scanner configuration settings."""

    model_config = SettingsConfigDict(env_prefix="SCANNER_", env_file=".env", extra="ignore")

    excluded_client_ids: list[str] = Field(
        default=[CANARY_CLIENT_ID],
        description="Client ids that are never reported (replica fetchers are always excluded)",
    )
    run_on_startup: bool = Field(
        default=True,
        description="Run a scan in the background when the API server starts",
    )
    output_csv: Path = Field(
        default=Path("client_inventory_scan_results.csv"),
        description="Path of the CSV inventory written by the scan command",
    )
    output_json: Path | None = Field(
        default=None,
        description="Optional path of a JSON inventory written by the scan command",
    )


class Settings(BaseSettings):
    """Main application settings.

    Configuration precedence (highest to lowest):
    1. Environment variables
    2. .env file
    3. Default values

    Example .env file:
        APP_DEBUG=true
        SOURCE_LOCATION=s3://my-bucket/kafka-logs/2025-08-04-06/
        SOURCE_REGION=eu-west-1
        SCANNER_OUTPUT_JSON=client_inventory.json
    """

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application metadata
    name: str = Field(default="ClientScan API", description="Application name")
    version: str = Field(default="0.1.0", description="Application version")
    description: str = Field(
        default="Kafka client inventory reconstructed from broker trace logs",
        description="Application description",
    )
    debug: bool = Field(default=False, description="Enable debug mode")
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Application environment",
    )

    # Sub-configurations
    api: APISettings = Field(default_factory=APISettings)
    source: SourceSettings = Field(default_factory=SourceSettings)
    scanner: ScannerSettings = Field(default_factory=ScannerSettings)

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    This function is cached to ensure we only parse configuration once.
    Use this function throughout the application to access settings.

    Returns:
        Settings: Application settings instance
    """
    return Settings()
