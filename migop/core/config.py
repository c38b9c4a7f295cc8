"""Application configuration management.

Settings are read from the environment (and a local .env file when present).
"""

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv


@dataclass
class Settings:
    """Application settings loaded from environment."""

    # App
    app_name: str = "MIGOP Editor"
    app_version: str = "0.3.0"
    debug: bool = False
    environment: str = "development"  # development, staging, production

    # Server
    host: str = "127.0.0.1"
    port: int = 8000

    # Document gateway (Apps Script web app)
    gateway_url: Optional[str] = None
    gateway_token: Optional[str] = None
    gateway_document_id: Optional[str] = None

    # Remote call policy (seconds)
    export_timeout_seconds: float = 30.0
    replace_timeout_seconds: float = 60.0
    counter_timeout_seconds: float = 30.0
    history_timeout_seconds: float = 60.0

    # 1 means fail fast: no automatic retries
    gateway_max_attempts: int = 1
    gateway_retry_backoff_seconds: float = 1.0

    # Cooperative processing
    chunk_max_items: int = 25
    chunk_max_millis: float = 40.0
    progress_every: int = 5

    # Logging
    log_level: str = "INFO"
    log_format: str = "text"  # json or text

    def __post_init__(self):
        """Validate settings after initialization."""
        for name in (
            "export_timeout_seconds",
            "replace_timeout_seconds",
            "counter_timeout_seconds",
            "history_timeout_seconds",
            "chunk_max_millis",
        ):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name.upper()} must be positive")
        if self.chunk_max_items < 1:
            raise ValueError("CHUNK_MAX_ITEMS must be at least 1")
        if self.progress_every < 1:
            raise ValueError("PROGRESS_EVERY must be at least 1")
        if self.gateway_max_attempts < 1:
            raise ValueError("GATEWAY_MAX_ATTEMPTS must be at least 1")
        if self.environment == "production" and not self.gateway_url:
            raise ValueError("GATEWAY_URL is required in production")

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "production"

    @property
    def uses_remote_gateway(self) -> bool:
        """True when a real document gateway is configured."""
        return bool(self.gateway_url)


def load_settings_from_env() -> Settings:
    """Load settings from environment variables."""
    load_dotenv()

    def get_bool(key: str, default: bool = False) -> bool:
        value = os.getenv(key, str(default)).lower()
        return value in ("true", "1", "yes")

    def get_int(key: str, default: int) -> int:
        return int(os.getenv(key, str(default)))

    def get_float(key: str, default: float) -> float:
        return float(os.getenv(key, str(default)))

    return Settings(
        # App
        app_name=os.getenv("APP_NAME", "MIGOP Editor"),
        app_version=os.getenv("APP_VERSION", "0.3.0"),
        debug=get_bool("DEBUG", False),
        environment=os.getenv("ENVIRONMENT", "development"),

        # Server
        host=os.getenv("HOST", "127.0.0.1"),
        port=get_int("PORT", 8000),

        # Document gateway
        gateway_url=os.getenv("GATEWAY_URL"),
        gateway_token=os.getenv("GATEWAY_TOKEN"),
        gateway_document_id=os.getenv("GATEWAY_DOCUMENT_ID"),

        # Remote call policy
        export_timeout_seconds=get_float("EXPORT_TIMEOUT_SECONDS", 30.0),
        replace_timeout_seconds=get_float("REPLACE_TIMEOUT_SECONDS", 60.0),
        counter_timeout_seconds=get_float("COUNTER_TIMEOUT_SECONDS", 30.0),
        history_timeout_seconds=get_float("HISTORY_TIMEOUT_SECONDS", 60.0),
        gateway_max_attempts=get_int("GATEWAY_MAX_ATTEMPTS", 1),
        gateway_retry_backoff_seconds=get_float("GATEWAY_RETRY_BACKOFF_SECONDS", 1.0),

        # Cooperative processing
        chunk_max_items=get_int("CHUNK_MAX_ITEMS", 25),
        chunk_max_millis=get_float("CHUNK_MAX_MILLIS", 40.0),
        progress_every=get_int("PROGRESS_EVERY", 5),

        # Logging
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_format=os.getenv("LOG_FORMAT", "text"),
    )


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return load_settings_from_env()


def clear_settings_cache() -> None:
    """Clear settings cache (for testing)."""
    get_settings.cache_clear()
