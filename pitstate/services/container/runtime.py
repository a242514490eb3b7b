"""Container runtime adapter.

``RuntimeClient`` lists the daemon operations the state services rely on.
``DockerRuntime`` is its only implementation, a thin layer over the
low-level docker SDK client. Methods are blocking; async callers run them
through ``run_in_executor``.
"""

import io
from typing import Any, Dict, Iterator, List, Optional, Protocol, Tuple

import docker
import structlog

from .client import DockerClientFactory

logger = structlog.get_logger(__name__)


class RuntimeClient(Protocol):
    """Daemon operations used by the state lifecycle."""

    def build(self, tag: str, context: bytes) -> Iterator[Dict[str, Any]]: ...

    def create_container(
        self,
        name: str,
        image: str,
        command: Optional[List[str]],
        exposed_ports: List[Tuple[int, str]],
        port_bindings: Dict[str, Optional[int]],
    ) -> str: ...

    def start_container(self, container_id: str) -> None: ...

    def logs(self, container_id: str) -> bytes: ...

    def inspect_container(self, container_id: str) -> Dict[str, Any]: ...

    def list_containers(self, name: Optional[str] = None) -> List[Dict[str, Any]]: ...

    def remove_container(self, container_id: str) -> None: ...

    def ping(self) -> bool: ...

    def close(self) -> None: ...


class DockerRuntime:
    """RuntimeClient backed by ``docker.APIClient``."""

    def __init__(self, api: Optional[docker.APIClient] = None):
        self._api = api or DockerClientFactory().create_api_client()

    @property
    def api(self) -> docker.APIClient:
        return self._api

    def build(self, tag: str, context: bytes) -> Iterator[Dict[str, Any]]:
        """Build an image from a tar context, yielding decoded log entries."""
        return self._api.build(
            fileobj=io.BytesIO(context),
            custom_context=True,
            tag=tag,
            rm=True,
            decode=True,
        )

    def create_container(
        self,
        name: str,
        image: str,
        command: Optional[List[str]],
        exposed_ports: List[Tuple[int, str]],
        port_bindings: Dict[str, Optional[int]],
    ) -> str:
        host_config = self._api.create_host_config(port_bindings=port_bindings)
        response = self._api.create_container(
            image=image,
            name=name,
            command=command,
            ports=exposed_ports or None,
            host_config=host_config,
        )
        for warning in response.get("Warnings") or []:
            logger.warning("Container create warning", name=name, warning=warning)
        return response["Id"]

    def start_container(self, container_id: str) -> None:
        self._api.start(container_id)

    def logs(self, container_id: str) -> bytes:
        """Full stdout+stderr snapshot, read from the beginning."""
        return self._api.logs(
            container_id, stdout=True, stderr=True, stream=False, follow=False
        )

    def inspect_container(self, container_id: str) -> Dict[str, Any]:
        return self._api.inspect_container(container_id)

    def list_containers(self, name: Optional[str] = None) -> List[Dict[str, Any]]:
        """All containers, running or not, optionally filtered by name.

        The daemon's name filter is a substring match; callers compare the
        returned ``Names`` exactly.
        """
        filters = {"name": name} if name else None
        return self._api.containers(all=True, filters=filters)

    def remove_container(self, container_id: str) -> None:
        self._api.remove_container(container_id, v=True, force=True)

    def ping(self) -> bool:
        return bool(self._api.ping())

    def close(self) -> None:
        self._api.close()
