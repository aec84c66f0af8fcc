from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Loading priority (highest to lowest):
    1. Environment variables
    2. .env file
    3. Default values below
    """

    # Environment
    environment: str = "development"
    debug: bool = False

    # Application
    app_name: str = "URL Shortener"
    app_version: str = "1.0.0"

    # Server
    host: str = "127.0.0.1"
    port: int = 8080
    base_url: str = "http://localhost:8080"  # Prefix for generated short links

    # URL store
    store_backend: str = "memory"  # Options: "memory", "sql"
    database_url: Optional[str] = None  # Setting this selects the sql backend

    # URL processor (background probes)
    worker_count: int = 4
    probe_queue_size: Optional[int] = None  # Defaults to worker_count * 2
    probe_timeout: float = 5.0  # Seconds per HEAD request
    probe_user_agent: str = "URLShortener/1.0"

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    # Caller identity cookie
    user_cookie_name: str = "user_id"
    user_cookie_max_age: int = 86400 * 365  # 1 year

    # Pydantic v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )


# Create settings instance
settings = Settings()
