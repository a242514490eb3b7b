"""State lifecycle management.

Builds fixture images, starts ready containers from them and removes them
again. Nothing is cached between calls: every operation recomputes the
image/container name from the provider and fixture.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, List, Mapping, Optional, TextIO, Tuple

import structlog

from ...config import StateProviderConfig, settings
from ...models.errors import (
    ConfigNotFoundError,
    ContainerCreateError,
    ContainerNotFoundError,
    ContainerRemoveError,
    ContainerStartError,
    ErrorDetail,
    ServiceUnavailableError,
)
from ...models.state import StateContainer
from ..container.client import DockerClientFactory
from ..container.runtime import DockerRuntime, RuntimeClient
from ..container.utils import DOCKER_ERRORS, describe_error, run_in_executor
from .builder import ImageBuilder
from .naming import context_path, image_name
from .readiness import ReadinessDetector

logger = structlog.get_logger(__name__)


class StateManager:
    """Manages state images and containers for integration tests.

    Operations on the same (provider, fixture) pair are serialized; different
    pairs run independently.
    """

    def __init__(
        self,
        runtime: Optional[RuntimeClient] = None,
        states_dir: Optional[str] = None,
        providers: Optional[Mapping[str, StateProviderConfig]] = None,
        host: Optional[str] = None,
        poll_interval: Optional[float] = None,
    ):
        """Initialize the state manager.

        Arguments left out are taken from the global settings.

        Args:
            runtime: Daemon adapter
            states_dir: Base directory of the fixture directories
            providers: Provider name to start/readiness configuration
            host: Host the started containers are reachable on
            poll_interval: Seconds between readiness log reads
        """
        if runtime is None or host is None:
            factory = DockerClientFactory()
            if runtime is None:
                runtime = DockerRuntime(factory.create_api_client())
            if host is None:
                host = factory.daemon_hostname()

        self._runtime = runtime
        self._host = host
        self._states_dir = states_dir if states_dir is not None else settings.states_dir
        self._providers = providers if providers is not None else settings.state_providers
        self._builder = ImageBuilder(runtime, self._states_dir)
        self._detector = ReadinessDetector(
            runtime,
            poll_interval=(
                poll_interval
                if poll_interval is not None
                else settings.readiness_poll_interval
            ),
        )
        self._locks: Dict[Tuple[str, str], asyncio.Lock] = {}
        self._lock_users: Dict[Tuple[str, str], int] = {}

    @property
    def runtime(self) -> RuntimeClient:
        return self._runtime

    @property
    def host(self) -> str:
        return self._host

    def name_for(self, provider: str, fixture: str) -> str:
        """Image and container name of a fixture."""
        return image_name(provider, context_path(self._states_dir, provider, fixture))

    def provider_config(self, provider: str) -> StateProviderConfig:
        """Configuration of a provider.

        Raises:
            ConfigNotFoundError: If the provider is not configured
        """
        config = self._providers.get(provider)
        if config is None:
            logger.warning("State provider not configured", provider=provider)
            raise ConfigNotFoundError(provider)
        return config

    async def build(self, provider: str, fixture: str, output: TextIO) -> str:
        """Build the fixture image, streaming the build log to ``output``.

        Returns:
            The image name
        """
        async with self._lock(provider, fixture):
            return await self._builder.build(provider, fixture, output)

    async def start(self, provider: str, fixture: str) -> StateContainer:
        """Start a container from a built fixture image and wait until ready.

        A container that fails to become ready is left in place; call
        ``stop`` to remove it.

        Raises:
            ConfigNotFoundError: If the provider is not configured
            ContainerCreateError: If the container cannot be created
            ContainerStartError: If the container cannot be started
            ReadinessTimeoutError: If the ready pattern is not seen in time
            LogFetchError: If the container logs cannot be read
        """
        config = self.provider_config(provider)
        name = self.name_for(provider, fixture)
        details = _state_details(provider, fixture, name)

        async with self._lock(provider, fixture):
            try:
                container_id = await run_in_executor(
                    self._runtime.create_container,
                    name,
                    name,
                    config.command,
                    config.exposed_ports(),
                    config.port_bindings(),
                )
            except DOCKER_ERRORS as e:
                logger.error(
                    "Failed to create state container",
                    provider=provider,
                    fixture=fixture,
                    image=name,
                    error=str(e),
                )
                raise ContainerCreateError(name, describe_error(e), details=details)

            try:
                await run_in_executor(self._runtime.start_container, container_id)
            except DOCKER_ERRORS as e:
                logger.error(
                    "Failed to start state container",
                    container_id=container_id[:12],
                    image=name,
                    error=str(e),
                )
                raise ContainerStartError(name, describe_error(e), details=details)

            logger.info(
                "State container started",
                provider=provider,
                fixture=fixture,
                container_id=container_id[:12],
                ready_timeout=config.ready_timeout,
            )
            await self._detector.wait_ready(
                container_id, config.ready_pattern, config.ready_timeout
            )

            try:
                info = await run_in_executor(
                    self._runtime.inspect_container, container_id
                )
            except DOCKER_ERRORS as e:
                raise ContainerStartError(
                    name, f"inspect failed: {describe_error(e)}", details=details
                )

        return StateContainer(
            id=info.get("Id") or container_id,
            host=self._host,
            name=name,
            ports=config.port_bindings(),
        )

    async def stop(self, provider: str, fixture: str) -> str:
        """Force-remove the fixture's container together with its volumes.

        Returns:
            The removed container id

        Raises:
            ContainerNotFoundError: If no container holds the fixture's name
        """
        name = self.name_for(provider, fixture)
        details = _state_details(provider, fixture, name)

        async with self._lock(provider, fixture):
            container_id = await self._find_container(name)
            if container_id is None:
                logger.info(
                    "No state container to remove", provider=provider, fixture=fixture
                )
                raise ContainerNotFoundError(name, details=details)

            try:
                await run_in_executor(self._runtime.remove_container, container_id)
            except DOCKER_ERRORS as e:
                raise ContainerRemoveError(name, describe_error(e), details=details)

        logger.info(
            "State container removed",
            provider=provider,
            fixture=fixture,
            container_id=container_id[:12],
        )
        return container_id

    async def status(self, provider: str, fixture: str) -> Optional[str]:
        """Id of the container holding the fixture's name, if any."""
        return await self._find_container(self.name_for(provider, fixture))

    async def ping(self) -> bool:
        """Check that the daemon answers."""
        try:
            return await run_in_executor(self._runtime.ping)
        except DOCKER_ERRORS as e:
            logger.warning("Docker daemon ping failed", error=str(e))
            return False

    def close(self) -> None:
        """Release the daemon connection."""
        self._runtime.close()

    async def _find_container(self, name: str) -> Optional[str]:
        try:
            containers = await run_in_executor(self._runtime.list_containers, name)
        except DOCKER_ERRORS as e:
            raise ServiceUnavailableError(
                "docker", f"Failed to list containers: {describe_error(e)}"
            )
        return _match_container(containers, name)

    @asynccontextmanager
    async def _lock(self, provider: str, fixture: str) -> AsyncIterator[None]:
        """Hold the fixture's lock; the lock is dropped once nobody uses it."""
        key = (provider, fixture)
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        self._lock_users[key] = self._lock_users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._lock_users[key] -= 1
            if not self._lock_users[key]:
                del self._lock_users[key]
                del self._locks[key]


def _match_container(containers: List[dict], name: str) -> Optional[str]:
    """Id of the first container whose names include ``name`` exactly."""
    for container in containers:
        for container_name in container.get("Names") or []:
            if container_name.lstrip("/") == name:
                return container["Id"]
    return None


def _state_details(provider: str, fixture: str, name: str) -> List[ErrorDetail]:
    return [
        ErrorDetail(field="provider", message=provider),
        ErrorDetail(field="fixture", message=fixture),
        ErrorDetail(field="name", message=name),
    ]
