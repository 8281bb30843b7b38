"""
Application configuration using pydantic-settings.
All settings are loaded from environment variables.
"""

from functools import lru_cache
from pathlib import Path
from typing import List

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Get the directory containing this file (app/)
APP_DIR = Path(__file__).resolve().parent
# Project root is one level up
PROJECT_ROOT = APP_DIR.parent
# .env file path
ENV_FILE = PROJECT_ROOT / ".env"

# Load .env file into environment variables BEFORE pydantic-settings reads them
if ENV_FILE.exists():
    load_dotenv(ENV_FILE, override=False)


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=str(ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # App
    app_name: str = "Wayfarer Experiences API"
    debug: bool = False
    log_level: str = "INFO"
    cors_origins: List[str] = ["http://localhost:3000"]

    # Database
    database_url: str

    # Supabase
    supabase_url: str
    supabase_key: str
    supabase_service_role_key: str = ""
    supabase_jwt_secret: str = ""  # JWT secret for verifying Supabase tokens

    # Stripe (checkout is stubbed while the secret key is empty)
    stripe_secret_key: str = ""
    stripe_webhook_secret: str = ""
    stripe_api_base: str = "https://api.stripe.com/v1"
    stripe_currency: str = "usd"
    stripe_webhook_tolerance_seconds: int = 300
    public_base_url: str = "http://localhost:3000"

    # Booking widget
    default_max_participants: int = 32
    availability_horizon_days: int = 12 * 31

    # Unpaid checkouts older than this are cancelled by the scheduler
    pending_checkout_ttl_minutes: int = 24 * 60 + 30

    @field_validator("cors_origins", mode="before")
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            import json
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                return [origin.strip() for origin in v.split(",")]
        return v


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
