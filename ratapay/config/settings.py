"""Application settings using Pydantic for environment-based configuration."""
from functools import lru_cache
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Stripe Configuration
    stripe_secret_key: str = Field(..., description="Stripe secret API key (sk_test_...)")
    stripe_webhook_secret: str = Field(..., description="Stripe webhook signing secret")
    stripe_api_version: Optional[str] = Field(
        default=None, description="Pinned Stripe API version (account default if unset)"
    )
    stripe_timeout_seconds: float = Field(
        default=10.0, gt=0, description="Upper bound for a single Stripe API call"
    )
    currency: str = Field(default="usd", description="Currency for created payment intents")

    # Webhook Configuration
    webhook_tolerance_seconds: int = Field(
        default=300, description="Accepted age of a Stripe-Signature timestamp"
    )
    webhook_timeout_seconds: float = Field(
        default=5.0, gt=0, description="Upper bound for applying one webhook event"
    )

    # Database Configuration
    database_url: str = Field(
        default="sqlite+aiosqlite:///./ratapay.db",
        description="SQLAlchemy async connection URL",
    )
    database_echo: bool = Field(default=False, description="Echo SQL queries (debug)")

    # Application Configuration
    app_name: str = Field(default="ratapay", description="Application name")
    app_env: str = Field(default="development", description="Environment (development/production)")
    log_level: str = Field(default="INFO", description="Logging level")
    debug: bool = Field(default=False, description="Debug mode")

    # API Configuration
    host: str = Field(default="0.0.0.0", description="API host")
    port: int = Field(default=3000, description="API port")
    allowed_origins: str = Field(
        default="*", description="CORS allowed origins (comma-separated)"
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("stripe_secret_key")
    @classmethod
    def validate_stripe_key(cls, v: str) -> str:
        """Validate that the Stripe secret key is a test or live key."""
        if not v.startswith("sk_test_") and not v.startswith("sk_live_"):
            raise ValueError(
                "Invalid Stripe secret key format. Must start with 'sk_test_' or 'sk_live_'"
            )
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level. Must be one of: {valid_levels}")
        return v.upper()

    @field_validator("currency")
    @classmethod
    def validate_currency(cls, v: str) -> str:
        """Stripe expects lowercase ISO currency codes."""
        if len(v) != 3:
            raise ValueError("Currency must be 3-letter code")
        return v.lower()

    def get_allowed_origins_list(self) -> List[str]:
        """Parse allowed origins from comma-separated string."""
        return [origin.strip() for origin in self.allowed_origins.split(",")]

    @property
    def is_test_mode(self) -> bool:
        """Check if using Stripe test mode."""
        return self.stripe_secret_key.startswith("sk_test_")


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
