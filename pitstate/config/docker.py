"""Docker daemon connection configuration."""

from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings


class DockerConfig(BaseSettings):
    """Daemon endpoint and TLS material."""

    docker_host: str = Field(default="unix:///var/run/docker.sock", alias="docker_host")
    docker_cert_path: Optional[str] = Field(default=None, alias="docker_cert_path")
    docker_tls_verify: bool = Field(default=True, alias="docker_tls_verify")
    docker_timeout: int = Field(default=60, ge=1, le=3600, alias="docker_timeout")

    def uses_tls(self) -> bool:
        """Remote daemons are always reached over HTTPS."""
        return not self.docker_host.startswith(("unix://", "npipe://"))

    class Config:
        env_prefix = ""
        env_ignore_empty = True
        extra = "ignore"
