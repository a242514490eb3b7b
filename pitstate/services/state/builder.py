"""State image builds."""

import asyncio
import threading
from typing import Any, Dict, Iterable, TextIO

import structlog

from ...models.errors import BuildError
from ..container.runtime import RuntimeClient
from ..container.utils import DOCKER_ERRORS, describe_error, run_in_executor
from .archive import tar_directory
from .naming import context_path, image_name

logger = structlog.get_logger(__name__)


class ImageBuilder:
    """Builds the image of a fixture under its content-addressed name."""

    def __init__(self, runtime: RuntimeClient, states_dir: str):
        """Initialize the builder.

        Args:
            runtime: Daemon adapter used to submit builds
            states_dir: Base directory holding the fixture directories
        """
        self._runtime = runtime
        self._states_dir = states_dir

    async def build(self, provider: str, fixture: str, output: TextIO) -> str:
        """Build the image for a fixture.

        The daemon's build log is written to ``output`` line by line while the
        build runs. Whatever was written stays in ``output`` if the build
        fails.

        Cancelling the calling task stops reading the daemon stream at the
        next log entry. The cancellation propagates only after the build
        thread has returned.

        Args:
            provider: State provider name
            fixture: Fixture name under the provider
            output: Sink receiving the build log

        Returns:
            The image name

        Raises:
            ArchiveError: If the fixture directory cannot be packaged
            BuildError: If the daemon rejects or fails the build
        """
        root = context_path(self._states_dir, provider, fixture)
        context = await run_in_executor(tar_directory, root)
        name = image_name(provider, root)

        logger.info(
            "Building state image",
            provider=provider,
            fixture=fixture,
            image=name,
            context_bytes=len(context),
        )
        cancelled = threading.Event()
        build = asyncio.ensure_future(
            run_in_executor(self._build_sync, name, context, output, cancelled)
        )
        try:
            await asyncio.shield(build)
        except asyncio.CancelledError:
            # the lock held by the caller must outlive the build thread
            cancelled.set()
            logger.info("Cancelling state image build", image=name)
            await asyncio.wait({build})
            if not build.cancelled():
                build.exception()
            raise
        logger.info("Built state image", provider=provider, fixture=fixture, image=name)
        return name

    def _build_sync(
        self, name: str, context: bytes, output: TextIO, cancelled: threading.Event
    ) -> None:
        try:
            _forward_build_log(
                name, self._runtime.build(name, context), output, cancelled
            )
        except BuildError:
            raise
        except DOCKER_ERRORS as e:
            logger.error("State image build failed", image=name, error=str(e))
            raise BuildError(name, describe_error(e))


def _forward_build_log(
    name: str,
    entries: Iterable[Dict[str, Any]],
    output: TextIO,
    cancelled: threading.Event,
) -> None:
    """Copy decoded build log entries to ``output``; raise on an error entry.

    Stops at the next entry once ``cancelled`` is set. The stream is closed
    on the way out so the daemon connection is released.
    """
    try:
        for entry in entries:
            if cancelled.is_set():
                logger.info("State image build cancelled", image=name)
                return
            if "stream" in entry:
                output.write(entry["stream"])
            elif "status" in entry:
                progress = entry.get("progress")
                line = f"{entry['status']} {progress}" if progress else entry["status"]
                output.write(line + "\n")
            if "error" in entry:
                reason = entry["error"].strip()
                output.write(reason + "\n")
                output.flush()
                logger.error("State image build failed", image=name, error=reason)
                raise BuildError(name, reason)
            output.flush()
    finally:
        close = getattr(entries, "close", None)
        if close is not None:
            close()
