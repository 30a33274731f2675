"""
Configuration management for the Compass LK maintenance toolkit.

Uses pydantic-settings for type-safe configuration with environment variable support.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class SupabaseSettings(BaseSettings):
    """Hosted backend (Supabase) connection settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    url: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("SUPABASE_URL", "VITE_SUPABASE_URL"),
    )
    # Service role key is recommended for maintenance work; the anon key is
    # subject to row-level security and most deletes will be rejected.
    service_role_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("SUPABASE_SERVICE_ROLE_KEY"),
    )
    key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices(
            "SUPABASE_KEY",
            "VITE_SUPABASE_KEY",
            "VITE_SUPABASE_PUBLISHABLE_KEY",
        ),
    )
    table: str = Field(default="destinations", validation_alias=AliasChoices("SUPABASE_TABLE"))

    @property
    def api_key(self) -> Optional[str]:
        """Key used for requests, preferring the service role key."""
        return self.service_role_key or self.key

    @property
    def rest_url(self) -> Optional[str]:
        """PostgREST base URL."""
        if not self.url:
            return None
        return f"{self.url.rstrip('/')}/rest/v1"


class AssetSettings(BaseSettings):
    """Local image asset locations."""

    model_config = SettingsConfigDict(
        env_prefix="ASSETS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Urls are built relative to this directory (the web app root)
    base_dir: Path = Field(default=Path("."))
    primary_root: Path = Field(default=Path("src/pictures"))
    fallback_root: Path = Field(default=Path("src/assets/destinations"))
    overrides_file: Optional[Path] = None

    @property
    def roots(self) -> list[tuple[str, Path]]:
        """Asset roots in preference order."""
        return [
            ("primary", self.base_dir / self.primary_root),
            ("fallback", self.base_dir / self.fallback_root),
        ]


class MaintenanceSettings(BaseSettings):
    """Maintenance script settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Logging
    log_level: str = "INFO"

    # Audit artifacts written before destructive operations
    backup_dir: Path = Field(default=Path("./backups"))

    # Backend limits
    delete_batch_size: int = 100
    update_batch_size: int = 50
    page_size: int = 1000

    # HTTP settings
    http_timeout: int = 30  # seconds
    http_max_retries: int = 3
    http_retry_delay: float = 1.0  # seconds


class Settings(BaseSettings):
    """Main settings class that combines all settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    supabase: SupabaseSettings = Field(default_factory=SupabaseSettings)
    assets: AssetSettings = Field(default_factory=AssetSettings)
    maintenance: MaintenanceSettings = Field(default_factory=MaintenanceSettings)


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()


# Convenience for quick access
settings = get_settings()


# Columns that feed the duplicate score, plus the flattened province name
SCORING_FIELDS = (
    "description",
    "province_id",
    "image_url",
    "location_lat",
    "location_lng",
)

# Select clause used when listing destinations with their province name embedded
DESTINATION_COLUMNS = "*,provinces(name)"
