"""Configuration management for the ASC registry pipeline"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings"""

    model_config = SettingsConfigDict(
        env_prefix="ASC_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",  # Ignore extra fields in environment
    )

    # Database
    database_url: str = Field(default="sqlite:///./data/asc_registry.db")

    # Data Configuration
    data_dir: str = Field(default="./data")
    export_dir: str = Field(default="./data/exports")
    regions_path: Optional[str] = Field(default=None)  # None -> bundled Census regions
    active_status: str = Field(default="Active")

    # Pipeline Configuration
    normalize_workers: int = Field(default=1, ge=1)
    ratio_precision: int = Field(default=2, ge=0)
    auto_refresh: bool = Field(default=True)

    # Logging Configuration
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")

    # Application Configuration
    app_name: str = "ASC Registry Analytics"
    app_version: str = "0.1.0"
    debug: bool = Field(default=False)


# Global settings instance
settings = Settings()
