"""Application configuration management using Pydantic Settings."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    Required settings will raise validation errors if not provided.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="campus-connect-api", description="Application name")
    app_env: str = Field(default="development", description="Environment (development/staging/production)")
    debug: bool = Field(default=False, description="Enable debug mode")

    # Server
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8080, description="Server port")

    # CORS
    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:5173,http://localhost:8080",
        description="Comma-separated list of allowed CORS origins",
    )

    # Supabase
    supabase_url: str = Field(..., description="Supabase project URL")
    supabase_secret_key: str = Field(..., description="Supabase secret key for backend operations")
    supabase_jwt_secret: str = Field(default="", description="Supabase JWT secret for HS256 token verification")
    supabase_signing_key_jwk: str = Field(
        default="",
        description="Supabase signing key JWK (JSON string) for ES256 verification; takes precedence over the JWT secret",
    )
    jwt_audience: str = Field(default="authenticated", description="Expected audience claim of access tokens")

    # Campus restriction
    allowed_email_domains: str = Field(
        default="iiti.ac.in",
        description="Comma-separated list of email domains allowed to sign up",
    )

    # Profiles
    profile_image_bucket: str = Field(default="profiles", description="Storage bucket for profile images")
    profile_image_max_bytes: int = Field(default=5 * 1024 * 1024, description="Maximum profile image size in bytes")

    # Request limits
    max_request_body_size: int = Field(
        default=6 * 1024 * 1024,
        description="Maximum request body size in bytes; leaves room for a profile image upload",
    )

    # Discovery feed
    feed_page_size: int = Field(default=50, description="Default number of candidates returned by the feed")

    # Messaging
    message_max_length: int = Field(default=2000, description="Maximum message length in characters")
    require_match_for_messaging: bool = Field(
        default=True,
        description="Only allow messages between matched users",
    )
    realtime_resubscribe_delay_seconds: float = Field(
        default=2.0,
        description="Delay before resubscribing after a realtime channel failure",
    )

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins string into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    @property
    def allowed_email_domains_list(self) -> list[str]:
        """Parse allowed email domains into a lowercase list."""
        return [
            domain.strip().lower().lstrip("@")
            for domain in self.allowed_email_domains.split(",")
            if domain.strip()
        ]

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.app_env == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings singleton.

    Returns:
        Settings: Application settings instance.

    Note:
        Settings are cached using lru_cache for performance.
        Call get_settings.cache_clear() to reload settings.
    """
    return Settings()
