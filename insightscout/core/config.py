# core/config.py

"""
Application Configuration
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List, Optional


class Settings(BaseSettings):
    app_name: str = "InsightScout Research API"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"

    # API Settings
    api_prefix: str = "/api"
    host: str = "0.0.0.0"
    port: int = 7501
    cors_origins: List[str] = ["http://localhost:5500", "http://127.0.0.1:5500"]

    # Job Settings
    provider_timeout_seconds: float = 60.0
    item_delay_seconds: float = 3.0
    status_poll_min_interval_seconds: float = 1.0
    retention_seconds: float = 3600.0
    sweep_interval_seconds: float = 300.0

    # Upload Settings
    max_upload_bytes: int = 5 * 1024 * 1024

    # Founder lookup (chat completions)
    perplexity_api_key: Optional[str] = None
    perplexity_base_url: str = "https://api.perplexity.ai"
    perplexity_model: str = "sonar"

    # Contact finder
    prospeo_api_key: Optional[str] = None
    prospeo_base_url: str = "https://api.prospeo.io"

    # Scraper Settings
    default_headless: bool = True
    search_timeout_ms: int = 30000
    http_timeout_seconds: float = 30.0

    model_config = SettingsConfigDict(
        env_prefix="INSIGHTSCOUT_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


settings = Settings()
