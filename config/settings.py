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
        env_file=(".env", "server/.env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"  # Ignore extra env vars
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
    supabase_service_role_key: Optional[str] = Field(
        None,
        description="Supabase service role key (server-side access)"
    )

    # ===================
    # TWILIO / WHATSAPP
    # ===================
    twilio_account_sid: Optional[str] = Field(
        None,
        description="Twilio account SID"
    )
    twilio_auth_token: Optional[str] = Field(
        None,
        description="Twilio auth token"
    )
    twilio_whatsapp_number: Optional[str] = Field(
        None,
        description="Sender number, with or without the whatsapp: prefix"
    )
    whatsapp_max_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="Send attempts before a WhatsApp message is given up"
    )
    whatsapp_retry_base_seconds: float = Field(
        default=1.0,
        ge=0,
        le=30,
        description="Delay before the first retry; doubles on each attempt"
    )

    # ===================
    # CSV IMPORT
    # ===================
    import_sample_size: int = Field(
        default=5,
        ge=1,
        le=50,
        description="Rows returned as sampleRows in preview mode"
    )

    # ===================
    # OTP CLEANUP
    # ===================
    otp_cleanup_enabled: bool = Field(
        default=True,
        description="Run the expired OTP cleanup task in the background"
    )
    otp_cleanup_interval_minutes: int = Field(
        default=60,
        ge=1,
        le=1440,
        description="Minutes between expired OTP cleanup runs"
    )

    # ===================
    # APP SETTINGS
    # ===================
    frontend_url: str = Field(
        default="http://localhost:5173",
        description="Dashboard origin allowed by CORS"
    )
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
        default=3001,
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
    def expose_error_details(self) -> bool:
        """Server-side error details are returned only in debug, never in production."""
        return self.debug and not self.is_production

    @property
    def twilio_configured(self) -> bool:
        """Check if Twilio is properly configured."""
        return bool(
            self.twilio_account_sid
            and self.twilio_auth_token
            and self.twilio_whatsapp_number
        )


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
