"""Shared utilities for container operations."""

import asyncio
import functools
from typing import Any, Callable, Optional, Tuple

from docker.errors import DockerException

# Failures a daemon round trip can raise. requests' connection errors are
# OSError subclasses.
DOCKER_ERRORS: Tuple[type, ...] = (DockerException, OSError)


async def run_in_executor(func: Callable[..., Any], *args, **kwargs) -> Any:
    """
    Run a blocking function in the default thread pool executor.

    Args:
        func: Blocking function to run
        *args: Positional arguments to pass to the function
        **kwargs: Keyword arguments to pass to the function

    Returns:
        Result of the function
    """
    loop = asyncio.get_running_loop()
    if kwargs:
        func = functools.partial(func, **kwargs)
    return await loop.run_in_executor(None, func, *args)


def describe_error(exc: BaseException) -> str:
    """Short human-readable reason for a daemon error."""
    explanation: Optional[str] = getattr(exc, "explanation", None)
    if explanation:
        return explanation if isinstance(explanation, str) else str(explanation)
    return str(exc) or type(exc).__name__
