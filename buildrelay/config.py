"""
Configuration management using Pydantic BaseSettings.

Loads settings from environment variables and .env files with type validation
and sensible defaults. Settings are frozen: they are read once at startup and
handed to the application factory.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Mapping

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from buildrelay.errors import ConfigurationError
from buildrelay.webhooks.providers import Provider, build_registry


class Settings(BaseSettings):
    """
    Application configuration settings.

    Loads from environment variables and .env file. All settings are typed
    and validated with sensible defaults.
    """

    # ============================================================================
    # Provider Secrets
    # ============================================================================

    vercel_webhook_secret: SecretStr = Field(
        default=SecretStr(""),
        description="Shared secret for verifying Vercel webhook signatures",
    )

    hop_webhook_secret: SecretStr = Field(
        default=SecretStr(""),
        description="Shared secret for verifying Hop.io webhook signatures",
    )

    generic_webhook_secret: SecretStr = Field(
        default=SecretStr(""),
        description="Shared secret for verifying generic CI webhook signatures",
    )

    # ============================================================================
    # Relay Configuration
    # ============================================================================

    production_builds_webhook_url: str = Field(
        default="",
        description="Downstream chat webhook URL that receives build notifications",
    )

    relay_timeout_seconds: float = Field(
        default=10.0,
        description="Timeout for the outbound relay request",
    )

    max_body_bytes: int = Field(
        default=1024 * 1024,
        description="Maximum accepted size of an inbound webhook body",
    )

    field_overrides: Dict[str, Dict[str, str]] = Field(
        default_factory=dict,
        description="Per-provider payload field paths, e.g. "
        '{"generic": {"project": "repository.name"}}',
    )

    # ============================================================================
    # Server Configuration
    # ============================================================================

    host: str = Field(
        default="127.0.0.1",
        description="Server host to bind to"
    )

    port: int = Field(
        default=8000,
        description="Server port to listen on"
    )

    # ============================================================================
    # Logging Configuration
    # ============================================================================

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )

    # ============================================================================
    # Validation Methods
    # ============================================================================

    @field_validator("production_builds_webhook_url")
    @classmethod
    def validate_webhook_url(cls, v: str) -> str:
        """Validate that the relay URL, when given, is an http(s) URL."""
        v = v.strip()
        if v and not (v.startswith("http://") or v.startswith("https://")):
            raise ValueError(
                "production_builds_webhook_url must start with 'http://' or 'https://'"
            )
        return v

    @field_validator("relay_timeout_seconds")
    @classmethod
    def validate_relay_timeout(cls, v: float) -> float:
        """Validate that the relay timeout is within a sane range."""
        if not (1 <= v <= 60):
            raise ValueError("relay_timeout_seconds must be between 1 and 60")
        return v

    @field_validator("max_body_bytes")
    @classmethod
    def validate_max_body_bytes(cls, v: int) -> int:
        """Validate that the body size limit is positive."""
        if v <= 0:
            raise ValueError("max_body_bytes must be positive")
        return v

    @field_validator("port")
    @classmethod
    def validate_port(cls, v: int) -> int:
        """Validate that port is within valid range."""
        if not (1 <= v <= 65535):
            raise ValueError("port must be between 1 and 65535")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate that log level is one of the standard levels."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v.upper()

    def provider_secrets(self) -> Dict[str, bytes]:
        """Return the configured secrets keyed by provider name, skipping empty ones."""
        secrets = {
            "vercel": self.vercel_webhook_secret,
            "hop": self.hop_webhook_secret,
            "generic": self.generic_webhook_secret,
        }
        return {
            name: secret.get_secret_value().encode()
            for name, secret in secrets.items()
            if secret.get_secret_value()
        }

    # ============================================================================
    # Pydantic Settings Configuration
    # ============================================================================

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",  # Ignore unknown environment variables
    )


# ============================================================================
# Runtime Relay Configuration
# ============================================================================


@dataclass(frozen=True)
class RelayConfig:
    """
    Immutable runtime configuration shared read-only by all requests.

    Built once at startup and passed explicitly to the request handler.
    """

    providers: Mapping[str, Provider]
    secrets: Mapping[str, bytes]
    relay_url: str
    max_body_bytes: int
    relay_timeout_seconds: float

    @classmethod
    def from_settings(cls, settings: Settings) -> "RelayConfig":
        """
        Build the runtime configuration from validated settings.

        Raises:
            ConfigurationError: If the relay URL or every provider secret is
                missing, or a field override is invalid
        """
        if not settings.production_builds_webhook_url:
            raise ConfigurationError("PRODUCTION_BUILDS_WEBHOOK_URL is not configured")

        secrets = settings.provider_secrets()
        if not secrets:
            raise ConfigurationError(
                "No provider webhook secret configured. Set at least one of "
                "VERCEL_WEBHOOK_SECRET, HOP_WEBHOOK_SECRET or GENERIC_WEBHOOK_SECRET."
            )

        try:
            providers = build_registry(settings.field_overrides)
        except ValueError as e:
            raise ConfigurationError(f"Invalid FIELD_OVERRIDES: {str(e)}")

        return cls(
            providers=providers,
            secrets=MappingProxyType(secrets),
            relay_url=settings.production_builds_webhook_url,
            max_body_bytes=settings.max_body_bytes,
            relay_timeout_seconds=settings.relay_timeout_seconds,
        )
