"""Container runtime services.

This package wraps the docker daemon:
- client.py: Docker client factory (TLS endpoint resolution)
- runtime.py: RuntimeClient protocol and its docker SDK adapter
- utils.py: Executor bridging and error helpers
"""

from .client import DockerClientFactory
from .runtime import DockerRuntime, RuntimeClient
from .utils import DOCKER_ERRORS, describe_error, run_in_executor

__all__ = [
    "DockerClientFactory",
    "DockerRuntime",
    "RuntimeClient",
    "DOCKER_ERRORS",
    "describe_error",
    "run_in_executor",
]
