"""
Configuration — typed, validated settings loaded from environment/.env.

Uses pydantic-settings to:
  - Load from environment variables (12-factor app)
  - Fall back to .env file
  - Validate types and constraints at startup

Only AppSettings is a BaseSettings instance. Sub-settings are plain BaseModel
classes populated via env_nested_delimiter="__", so PROXY__CERT_HEADER maps to
proxy.cert_header and EXTRACTION__MAX_ALTNAME_DEPTH to
extraction.max_altname_depth.

The extraction core itself takes plain parameters; these settings only feed
the ASGI service and the command line.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from uzi_reader.extractor import DEFAULT_MAX_DEPTH

# Resolve the .env file relative to the project root (two levels above this file),
# so settings load correctly regardless of the working directory at runtime.
_ENV_FILE = Path(__file__).parent.parent.parent / ".env"

# Level names understood by both the logging module and uvicorn.
_LOG_LEVELS = ("CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG")


class ProxySettings(BaseModel):
    """
    Headers set by the TLS-terminating reverse proxy.

    nginx example:
      proxy_set_header X-SSL-Client-Verify $ssl_client_verify;
      proxy_set_header X-SSL-Client-Cert   $ssl_client_escaped_cert;
    """

    verify_header: str = Field(
        default="X-SSL-Client-Verify",
        description="Header carrying the proxy's client-cert verification result",
    )
    cert_header: str = Field(
        default="X-SSL-Client-Cert",
        description="Header carrying the client certificate PEM",
    )
    cert_url_encoded: bool = Field(
        default=True,
        description="Whether the certificate header is URL-encoded ($ssl_client_escaped_cert)",
    )


class ExtractionSettings(BaseModel):
    """Limits applied while walking the subjectAltName tree."""

    max_altname_depth: int = Field(
        default=DEFAULT_MAX_DEPTH,
        ge=1,
        le=256,
        description="Deepest otherName nesting searched for the UZI payload",
    )


class AppSettings(BaseSettings):
    """
    Root application settings — aggregates all sub-settings.

    Load order (highest priority first):
      1. Environment variables
      2. .env file
      3. Default values
    """

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE,
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    proxy: ProxySettings = Field(default_factory=lambda: ProxySettings())
    extraction: ExtractionSettings = Field(default_factory=lambda: ExtractionSettings())

    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000, ge=1, le=65535)
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Accept only the standard logging level names (case-insensitive)."""
        level = value.strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"Unknown log level: {value!r}")
        return level
