"""
Configuration management for the firebatch client.

Supports configuration via environment variables and .env files.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ClientConfig(BaseSettings):
    """
    Configuration settings for the database client.

    All settings can be configured via environment variables with the FIREBATCH_ prefix.
    """

    model_config = SettingsConfigDict(
        env_prefix="FIREBATCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Database settings
    database_url: Optional[str] = Field(
        default=None,
        description="Base URL of the database (e.g. https://my-app.firebaseio.com/)"
    )
    database_secret: Optional[str] = Field(
        default=None,
        description="Legacy database secret or OAuth2 access token"
    )

    # Transport settings
    request_timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        description="Per-request HTTP timeout"
    )

    # Retry settings
    max_generation: int = Field(
        default=6,
        ge=0,
        description="Last retry generation (generations are numbered from 0)"
    )
    first_generation_max_failures: int = Field(
        default=100,
        ge=0,
        description="Largest failure count that still allows a first retry"
    )
    first_generation_failure_ratio: float = Field(
        default=0.25,
        gt=0,
        le=1,
        description="Failures must stay strictly below this share of the batch for a first retry"
    )
    backoff_base_seconds: float = Field(
        default=2.0,
        gt=0,
        description="Backoff base, raised to the generation number"
    )
    backoff_jitter_seconds: float = Field(
        default=1.0,
        ge=0,
        description="Upper bound of the random delay added to each backoff"
    )

    # Logging settings
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )
    log_json: bool = Field(
        default=False,
        description="Output logs in JSON format"
    )

    def backoff_seconds(self, generation: int, jitter: float) -> float:
        """Delay before dispatching the generation after `generation`."""
        return self.backoff_base_seconds ** generation + round(jitter * self.backoff_jitter_seconds, 3)


# Global config instance
_config: Optional[ClientConfig] = None


def get_config() -> ClientConfig:
    """Get or create the global configuration instance."""
    global _config
    if _config is None:
        _config = ClientConfig()
    return _config


def set_config(config: ClientConfig) -> None:
    """Set the global configuration instance."""
    global _config
    _config = config
