"""Configuration settings for the log forwarder."""

from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv
from typing import List, Optional

# Load environment variables from .env file
load_dotenv()


class Settings(BaseSettings):
    """Log forwarder settings loaded from environment variables."""

    # Local logging
    log_level: str = Field(default="INFO")
    log_capture_stdout: bool = Field(
        default=False,
        description="Redirect sys.stdout writes into forwarded records",
    )
    log_excluded_loggers: str = Field(
        default="httpx,httpcore,log_forwarder",
        description="Logger name prefixes that are echoed locally but never forwarded",
    )

    # Remote sink
    log_sink_url: Optional[str] = Field(default=None)
    log_sink_timeout: float = Field(default=10.0, gt=0)

    # Drainer policy
    log_retry_delay: float = Field(
        default=30.0,
        ge=0,
        description="Fixed backoff in seconds after a failed persist",
    )
    log_reschedule_delay: float = Field(
        default=0.0,
        ge=0,
        description="Delay in seconds between successful drain steps",
    )
    log_retry_limit: Optional[int] = Field(
        default=None,
        ge=1,
        description="Consecutive failures before a record is dropped (None = never)",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalise the level name and reject unknown ones."""
        level = v.strip().upper()
        if level not in {"TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @field_validator("log_sink_url")
    @classmethod
    def validate_sink_url(cls, v: Optional[str]) -> Optional[str]:
        """Treat a blank URL as "no sink configured"."""
        if v is None or not v.strip():
            return None
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError("LOG_SINK_URL must be an http(s) URL")
        return v

    @property
    def log_excluded_loggers_list(self) -> List[str]:
        """Get excluded logger prefixes as a list."""
        return [
            name.strip() for name in self.log_excluded_loggers.split(",") if name.strip()
        ]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix for environment variables
        extra="forbid",  # Forbid extra fields for better type safety
    )


def get_settings() -> Settings:
    """Get settings instance."""
    return Settings()


# Create a global settings instance lazily
settings: Settings | None = None


def get_global_settings() -> Settings:
    """Get or create the global settings instance."""
    global settings
    if settings is None:
        settings = get_settings()
    return settings
