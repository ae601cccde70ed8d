"""
Application settings loaded from environment variables.

Uses pydantic-settings for validation and type safety.
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from functools import lru_cache


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

    # ===================
    # IMPORT SESSIONS
    # ===================
    import_session_ttl_minutes: int = Field(
        default=30,
        ge=1,
        le=24 * 60,
        description="Minutes an idle import session is kept in memory"
    )
    import_session_max_count: int = Field(
        default=64,
        ge=1,
        le=10000,
        description="Maximum number of import sessions held at once"
    )

    # ===================
    # MANUFACTURER LOOKUP
    # ===================
    manufacturer_cache_ttl_seconds: int = Field(
        default=300,
        ge=0,
        le=86400,
        description="Seconds the verified manufacturer list is cached (0 = always refetch)"
    )
    manufacturer_suggestion_limit: int = Field(
        default=5,
        ge=1,
        le=20,
        description="Maximum spelling suggestions returned per manufacturer"
    )
    manufacturer_suggestion_cutoff: int = Field(
        default=75,
        ge=0,
        le=100,
        description="Minimum fuzzy ratio (0-100) for a spelling suggestion"
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
        description="API server host"
    )
    api_port: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="API server port"
    )
    cors_origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"],
        description="Origins allowed to call the API (JSON list in env)"
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"


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
