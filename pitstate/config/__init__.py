"""Configuration management for pitstate.

Usage:
    from pitstate.config import settings

    # Grouped settings
    settings.docker.docker_host
    settings.logging.log_level

    # Flat access
    settings.docker_host
    settings.get_provider("mongo")
"""

import json
from pathlib import Path
from typing import Dict, Optional

import structlog
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .docker import DockerConfig
from .logging import LoggingConfig
from .providers import PortBinding, StateProviderConfig, parse_duration

logger = structlog.get_logger(__name__)


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=False,
        extra="ignore",
    )

    # Docker daemon (DOCKER_HOST / DOCKER_CERT_PATH follow the docker CLI names)
    docker_host: str = Field(default="unix:///var/run/docker.sock")
    docker_cert_path: Optional[str] = Field(default=None)
    docker_tls_verify: bool = Field(default=True)
    docker_timeout: int = Field(default=60, ge=1, le=3600)

    # Fixtures
    states_dir: str = Field(
        default="states",
        description="Base directory holding <provider>/'<fixture>' build contexts",
    )

    # Readiness detection
    readiness_poll_interval_ms: int = Field(
        default=50,
        ge=1,
        le=10000,
        description="Delay between two reads of the container log",
    )

    # State providers
    state_providers: Dict[str, StateProviderConfig] = Field(default_factory=dict)
    state_providers_file: Optional[str] = Field(
        default=None, description="JSON file with additional provider definitions"
    )

    # API Configuration
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=8000, ge=1, le=65535)

    # Logging Configuration
    log_level: str = Field(default="INFO")
    log_format: str = Field(default="json")

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v):
        """Only json and console renderers exist."""
        v = v.lower()
        if v not in ("json", "console"):
            raise ValueError("log_format must be 'json' or 'console'")
        return v

    @model_validator(mode="after")
    def load_providers_file(self):
        """Merge providers from state_providers_file; env entries win."""
        if not self.state_providers_file:
            return self

        path = Path(self.state_providers_file)
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ValueError(f"Cannot read state providers file {path}: {e}")

        merged = {
            name: StateProviderConfig.model_validate(data) for name, data in raw.items()
        }
        merged.update(self.state_providers)
        self.state_providers = merged
        logger.debug(
            "Loaded state providers file", path=str(path), providers=sorted(raw)
        )
        return self

    # ========================================================================
    # GROUPED CONFIG ACCESS
    # ========================================================================

    @property
    def docker(self) -> DockerConfig:
        """Access docker daemon configuration group."""
        return DockerConfig(
            docker_host=self.docker_host,
            docker_cert_path=self.docker_cert_path,
            docker_tls_verify=self.docker_tls_verify,
            docker_timeout=self.docker_timeout,
        )

    @property
    def logging(self) -> LoggingConfig:
        """Access logging configuration group."""
        return LoggingConfig(log_level=self.log_level, log_format=self.log_format)

    # ========================================================================
    # HELPER METHODS
    # ========================================================================

    @property
    def readiness_poll_interval(self) -> float:
        """Poll interval in seconds."""
        return self.readiness_poll_interval_ms / 1000.0

    def get_provider(self, name: str) -> Optional[StateProviderConfig]:
        """Look up the configuration registered for a state provider."""
        return self.state_providers.get(name)


# Global settings instance
settings = Settings()

__all__ = [
    "Settings",
    "settings",
    "DockerConfig",
    "LoggingConfig",
    "PortBinding",
    "StateProviderConfig",
    "parse_duration",
]
