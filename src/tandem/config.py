"""Configuration management for tandem."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from tandem.errors import ConfigurationError
from tandem.logging_utils import LogProfile, configure_logging
from tandem.transport.http import DEFAULT_BASE_URL
from tandem.transport.websocket import DEFAULT_REALTIME_URL


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_prefix="TANDEM_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # API Configuration
    api_key: str | None = Field(default=None, description="API key for the model service")
    base_url: str = Field(default=DEFAULT_BASE_URL, description="Base URL of the responses endpoint")
    realtime_url: str = Field(default=DEFAULT_REALTIME_URL, description="WebSocket URL for realtime sessions")
    model: str = Field(default="gpt-4.1-mini", description="Model used for request/response turns")
    realtime_model: str = Field(default="gpt-realtime", description="Model used for realtime sessions")
    request_timeout_seconds: float = Field(default=60.0, description="HTTP request timeout in seconds")

    # Turn Configuration
    stream: bool = Field(default=True, description="Stream server events instead of blocking requests")
    store: bool = Field(default=False, description="Rely on server-side conversation state")
    max_turns: int = Field(default=10, ge=1, description="Maximum requests per auto-iterated answer")

    # Logging Configuration
    log_level: str = Field(default="INFO", description="Log level")
    log_profile: LogProfile = Field(default="default", description="Log profile: default or rich")

    def require_api_key(self) -> str:
        if not self.api_key:
            raise ConfigurationError("TANDEM_API_KEY is not set")
        return self.api_key


def get_settings(**overrides: object) -> Settings:
    """Load settings from the environment and configure logging."""
    settings = Settings(**overrides)  # type: ignore[arg-type]
    configure_logging(profile=settings.log_profile, level=settings.log_level)
    return settings
