"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    openai_api_key: str
    openai_model: str = "gpt-4o-mini"
    openai_timeout_seconds: float = 30.0
    openai_max_completion_tokens: int = 16000
    off_base_url: str = "https://world.openfoodfacts.org"
    off_user_agent: str = "food-scanner/0.1"
    barcode_timeout_seconds: float = 5.0
    search_timeout_seconds: float = 15.0
    search_page_size: int = 20
    search_retry_delay_seconds: float = 1.0
    log_level: str = "INFO"
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )
