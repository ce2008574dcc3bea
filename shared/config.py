"""
Shared configuration management for the Hallway service.
"""

import ipaddress
from typing import Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


LOG_LEVELS = ("trace", "debug", "info", "warn", "warning", "error")


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="HALLWAY_",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    # Environment
    env: str = "local"
    log_level: str = Field(
        default="info",
        validation_alias=AliasChoices("HALLWAY_LOG_LEVEL", "LOG_LEVEL"),
    )

    # Files
    conf_dir: str = "./"
    html_dir: str = "./html_files"

    # Identity assertion from the proxy
    auth_enabled: bool = True
    jwt_leeway_seconds: int = 60
    debug_email: str = "testuser@testmail.com"
    debug_name: str = "Test User"

    # Startup fetches (well-known routes, JWKS); defaults to https://{domain}
    proxy_url: Optional[str] = None
    fetch_retry_attempts: int = 30
    fetch_retry_delay_seconds: float = 10.0

    # Render cache
    cache_clean_interval_seconds: int = 5 * 60 * 60
    cache_max_age_seconds: int = 2 * 24 * 60 * 60

    # Page
    background: str = "background.avif"

    @field_validator("log_level")
    @classmethod
    def _known_log_level(cls, value: str) -> str:
        level = value.strip().lower()
        if level not in LOG_LEVELS:
            raise ValueError(f"Unexpected log level '{value}'")
        return level

    @property
    def stdlib_log_level(self) -> str:
        """Name of the matching standard library level."""
        if self.log_level == "trace":
            return "DEBUG"
        if self.log_level == "warn":
            return "WARNING"
        return self.log_level.upper()


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    host: str = Field(
        default="0.0.0.0",
        validation_alias=AliasChoices("HTTP_ADDRESS"),
    )
    port: int = Field(
        default=8080,
        validation_alias=AliasChoices("HTTP_PORT"),
    )

    @field_validator("host")
    @classmethod
    def _ipv4_host(cls, value: str) -> str:
        try:
            ipaddress.IPv4Address(value)
        except ValueError:
            raise ValueError(f"Not a valid IPv4 address: '{value}'")
        return value


def get_config(service_name: str, port: Optional[int] = None, **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    if port is not None:
        overrides["port"] = port
    return ServiceConfig(service_name=service_name, **overrides)
