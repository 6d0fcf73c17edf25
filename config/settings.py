"""
Application settings loaded from environment variables.

Uses pydantic-settings for validation and type safety.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings.

    All values loaded from .env file or environment variables.
    Validation happens automatically on startup.
    """

    model_config = SettingsConfigDict(
        env_file=(".env", "../.env"),  # Check current dir, then parent
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # ===================
    # SUPABASE
    # ===================
    supabase_url: str = Field(
        ...,
        description="Supabase project URL"
    )
    supabase_key: str = Field(
        ...,
        description="Supabase anon/public key"
    )
    supabase_service_key: Optional[str] = Field(
        None,
        description="Supabase service role key (for admin operations)"
    )

    # ===================
    # STORAGE / PHOTOS
    # ===================
    photo_bucket: str = Field(
        default="fotos-protocolos",
        description="Storage bucket holding protocolo photos"
    )
    upload_max_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Attempts per photo before giving up"
    )
    upload_timeout_seconds: Optional[float] = Field(
        default=30.0,
        gt=0,
        description="Timeout for a single upload attempt (None disables it)"
    )

    # ===================
    # IMPORTS
    # ===================
    import_chunk_size: int = Field(
        default=500,
        ge=1,
        le=5000,
        description="Rows per insert call when replacing a partition"
    )

    # ===================
    # WHATSAPP (EVOLUTION API)
    # ===================
    evolution_api_url: Optional[str] = Field(
        None,
        description="Evolution API base URL"
    )
    evolution_api_key: Optional[str] = Field(
        None,
        description="Evolution API key"
    )
    evolution_instance_name: Optional[str] = Field(
        None,
        description="Evolution API instance name"
    )

    # ===================
    # SLA ALERTS
    # ===================
    sla_webhook_url: Optional[str] = Field(
        None,
        description="Webhook that receives SLA alerts"
    )
    sla_alert_days: int = Field(
        default=16,
        ge=1,
        le=90,
        description="Days without closing before a protocolo triggers an alert"
    )

    # ===================
    # APP SETTINGS
    # ===================
    environment: str = Field(
        default="development",
        pattern="^(development|staging|production)$",
        description="Application environment"
    )
    debug: bool = Field(
        default=True,
        description="Enable debug mode"
    )
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Logging level"
    )
    api_host: str = Field(
        default="0.0.0.0",
        description="API host"
    )
    api_port: int = Field(
        default=8000,
        ge=1000,
        le=65535,
        description="API port"
    )

    # ===================
    # COMPUTED PROPERTIES
    # ===================
    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"

    @property
    def whatsapp_configured(self) -> bool:
        """Check if the Evolution API is fully configured."""
        return bool(
            self.evolution_api_url
            and self.evolution_api_key
            and self.evolution_instance_name
        )

    @property
    def public_storage_url(self) -> str:
        """Base URL for public objects in the photo bucket."""
        return f"{self.supabase_url.rstrip('/')}/storage/v1/object/public/{self.photo_bucket}"


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload.

    Returns:
        Settings: Application settings

    Raises:
        ValidationError: If required env vars are missing or invalid
    """
    return Settings()


# For convenient imports: from config.settings import settings
settings = get_settings()
