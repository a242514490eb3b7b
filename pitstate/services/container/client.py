"""Docker client factory.

Builds a low-level ``docker.APIClient`` from the configured daemon host and
certificate directory. Remote daemons are always reached over HTTPS with the
``cert.pem``/``key.pem``/``ca.pem`` triple found in the certificate path.
"""

import os
from typing import Optional
from urllib.parse import urlparse, urlunparse

import docker
import structlog
from docker.tls import TLSConfig

from ...config import DockerConfig, settings

logger = structlog.get_logger(__name__)


class DockerClientFactory:
    """Creates docker API clients from a DockerConfig."""

    def __init__(self, config: Optional[DockerConfig] = None):
        self._config = config or settings.docker

    @property
    def config(self) -> DockerConfig:
        return self._config

    def base_url(self) -> str:
        """Daemon URL with the scheme forced to https for remote hosts."""
        host = self._config.docker_host
        if not self._config.uses_tls():
            return host
        parsed = urlparse(host)
        if not parsed.netloc:
            # bare "host:port"
            parsed = urlparse(f"tcp://{host}")
        return urlunparse(parsed._replace(scheme="https"))

    def daemon_hostname(self) -> str:
        """Host part of the daemon address, without scheme or port."""
        if not self._config.uses_tls():
            return "localhost"
        parsed = urlparse(self.base_url())
        return parsed.hostname or "localhost"

    def tls_config(self) -> Optional[TLSConfig]:
        """TLS settings for remote daemons, None for local sockets."""
        if not self._config.uses_tls():
            return None

        cert_path = self._config.docker_cert_path
        if not cert_path:
            return TLSConfig(verify=self._config.docker_tls_verify)

        client_cert = (
            os.path.join(cert_path, "cert.pem"),
            os.path.join(cert_path, "key.pem"),
        )
        if not self._config.docker_tls_verify:
            logger.warning(
                "Docker daemon certificate verification disabled",
                docker_host=self._config.docker_host,
            )
            return TLSConfig(client_cert=client_cert, verify=False)

        return TLSConfig(
            client_cert=client_cert,
            ca_cert=os.path.join(cert_path, "ca.pem"),
            verify=True,
        )

    def create_api_client(self) -> docker.APIClient:
        """Create a low-level API client for the configured daemon."""
        base_url = self.base_url()
        client = docker.APIClient(
            base_url=base_url,
            tls=self.tls_config() or False,
            timeout=self._config.docker_timeout,
        )
        logger.info(
            "Docker client created",
            base_url=base_url,
            tls=self._config.uses_tls(),
        )
        return client
