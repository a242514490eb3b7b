"""Readiness detection for state containers.

A state is ready once its combined stdout/stderr output matches the
provider's ready pattern. The detector re-reads the whole log on every poll,
so output written before the first poll, or split across polls, is never
missed.
"""

import asyncio
import re
import time
from typing import Callable, Pattern, Union

import structlog

from ...models.errors import LogFetchError, ReadinessTimeoutError
from ..container.runtime import RuntimeClient
from ..container.utils import DOCKER_ERRORS, describe_error, run_in_executor

logger = structlog.get_logger(__name__)

DEFAULT_POLL_INTERVAL = 0.05


class ReadinessDetector:
    """Polls container logs until a pattern matches or a deadline passes."""

    def __init__(
        self,
        runtime: RuntimeClient,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the detector.

        Args:
            runtime: Daemon adapter used to read container logs
            poll_interval: Seconds between two log reads
            clock: Monotonic clock, replaceable in tests
        """
        if poll_interval <= 0:
            raise ValueError("poll_interval must be positive")
        self._runtime = runtime
        self._poll_interval = poll_interval
        self._clock = clock

    @property
    def poll_interval(self) -> float:
        return self._poll_interval

    async def wait_ready(
        self,
        container_id: str,
        pattern: Union[str, Pattern[str]],
        timeout: float,
    ) -> None:
        """Block until the container output matches ``pattern``.

        The first read happens immediately. After the deadline has passed one
        last read is made before giving up, so the wait ends no earlier than
        ``timeout`` and at most one poll interval (plus one log read) later.

        Raises:
            ReadinessTimeoutError: If no match was seen before the deadline
            LogFetchError: If the logs cannot be read; not retried
        """
        if isinstance(pattern, str):
            pattern = re.compile(pattern)

        deadline = self._clock() + timeout
        polls = 0
        while True:
            output = await self._read_logs(container_id)
            polls += 1
            if pattern.search(output):
                logger.info(
                    "Container ready",
                    container_id=container_id[:12],
                    polls=polls,
                )
                return

            remaining = deadline - self._clock()
            if remaining <= 0:
                logger.warning(
                    "Container readiness timed out",
                    container_id=container_id[:12],
                    timeout=timeout,
                    polls=polls,
                    pattern=pattern.pattern,
                )
                raise ReadinessTimeoutError(container_id, timeout, pattern.pattern)

            await asyncio.sleep(min(self._poll_interval, remaining))

    async def _read_logs(self, container_id: str) -> str:
        try:
            raw = await run_in_executor(self._runtime.logs, container_id)
        except DOCKER_ERRORS as e:
            logger.error(
                "Failed to read container logs",
                container_id=container_id[:12],
                error=str(e),
            )
            raise LogFetchError(container_id, describe_error(e))
        if isinstance(raw, bytes):
            return raw.decode("utf-8", errors="replace")
        return raw
