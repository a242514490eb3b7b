"""Unit tests for ImageBuilder."""

import asyncio
import io
import re
import tarfile
import threading
import time

import pytest
from docker.errors import APIError

from pitstate.models.errors import ArchiveError, BuildError
from pitstate.services.state.builder import ImageBuilder
from pitstate.services.state.naming import context_path, image_name


@pytest.fixture
def builder(mock_runtime, states_dir):
    return ImageBuilder(mock_runtime, str(states_dir))


class TestBuild:
    """Test successful builds."""

    @pytest.mark.asyncio
    async def test_returns_content_addressed_name(self, builder, states_dir):
        """Test the image name follows the naming contract."""
        output = io.StringIO()

        name = await builder.build("mongo", "several users", output)

        expected = image_name(
            "mongo", context_path(str(states_dir), "mongo", "several users")
        )
        assert name == expected
        assert re.fullmatch(r"pitstate_mongo_[0-9a-f]{32}", name)

    @pytest.mark.asyncio
    async def test_streams_build_log(self, builder):
        """Test the daemon log is forwarded to the output sink."""
        output = io.StringIO()

        await builder.build("mongo", "several users", output)

        assert re.match(r"(?s).*Successfully built.*", output.getvalue())
        assert output.getvalue().startswith("Step 1/1 : FROM mongo\n")

    @pytest.mark.asyncio
    async def test_submits_fixture_archive(self, builder, mock_runtime):
        """Test the fixture directory is sent as a tar context tagged with the name."""
        name = await builder.build("mongo", "several users", io.StringIO())

        tag, context = mock_runtime.build.call_args.args
        assert tag == name
        with tarfile.open(fileobj=io.BytesIO(context)) as tar:
            assert sorted(tar.getnames()) == ["Dockerfile", "seed.js"]

    @pytest.mark.asyncio
    async def test_status_lines_are_forwarded(self, builder, mock_runtime):
        """Test pull progress entries show up in the output."""
        mock_runtime.build.return_value = iter(
            [
                {"status": "Pulling from library/mongo", "id": "latest"},
                {"status": "Downloading", "progress": "[==>   ] 1MB/5MB"},
                {"stream": "Successfully built 0123456789ab\n"},
            ]
        )
        output = io.StringIO()

        await builder.build("mongo", "several users", output)

        lines = output.getvalue().splitlines()
        assert lines[0] == "Pulling from library/mongo"
        assert lines[1] == "Downloading [==>   ] 1MB/5MB"

    @pytest.mark.asyncio
    async def test_rebuild_keeps_name(self, builder, mock_runtime):
        """Test building twice targets the same image name."""
        first = await builder.build("mongo", "several users", io.StringIO())
        mock_runtime.build.return_value = iter([{"stream": "Successfully built 1\n"}])
        second = await builder.build("mongo", "several users", io.StringIO())
        assert first == second


class TestBuildFailures:
    """Test failing builds."""

    @pytest.mark.asyncio
    async def test_missing_fixture_raises_archive_error(self, builder, mock_runtime):
        """Test an unknown fixture fails before contacting the daemon."""
        with pytest.raises(ArchiveError):
            await builder.build("mongo", "no such fixture", io.StringIO())
        mock_runtime.build.assert_not_called()

    @pytest.mark.asyncio
    async def test_error_entry_raises_and_keeps_partial_log(self, builder, mock_runtime):
        """Test a build error keeps what was already written."""
        mock_runtime.build.return_value = iter(
            [
                {"stream": "Step 1/2 : FROM mongo\n"},
                {"stream": "Step 2/2 : RUN false\n"},
                {
                    "error": "The command '/bin/sh -c false' returned a non-zero code: 1",
                    "errorDetail": {"code": 1},
                },
                {"stream": "never forwarded\n"},
            ]
        )
        output = io.StringIO()

        with pytest.raises(BuildError) as exc_info:
            await builder.build("mongo", "several users", output)

        log = output.getvalue()
        assert "Step 2/2 : RUN false" in log
        assert "returned a non-zero code" in log
        assert "never forwarded" not in log
        assert exc_info.value.image_name.startswith("pitstate_mongo_")
        assert "non-zero code" in exc_info.value.message

    @pytest.mark.asyncio
    async def test_daemon_error_raises_build_error(self, builder, mock_runtime):
        """Test an API error from the daemon becomes a BuildError."""
        mock_runtime.build.side_effect = APIError("500 Server Error")

        with pytest.raises(BuildError) as exc_info:
            await builder.build("mongo", "several users", io.StringIO())

        assert exc_info.value.status_code == 502


class TestBuildCancellation:
    """Test cancelling a running build."""

    @staticmethod
    def _slow_build(consumed, closed):
        def build(tag, context):
            def entries():
                try:
                    for step in range(10):
                        time.sleep(0.05)
                        consumed.append(step)
                        yield {"stream": f"Step {step + 1}/10\n"}
                finally:
                    closed.set()

            return entries()

        return build

    @pytest.mark.asyncio
    async def test_cancel_stops_reading_the_stream(self, state_manager, mock_runtime):
        """Test the daemon stream is closed and no longer read after cancel."""
        consumed = []
        closed = threading.Event()
        mock_runtime.build.side_effect = self._slow_build(consumed, closed)
        output = io.StringIO()

        task = asyncio.ensure_future(
            state_manager.build("mongo", "several users", output)
        )
        await asyncio.sleep(0.12)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert closed.is_set()
        at_cancel = len(consumed)
        written = output.getvalue()

        await asyncio.sleep(0.3)

        assert at_cancel < 10
        assert len(consumed) == at_cancel
        assert output.getvalue() == written

    @pytest.mark.asyncio
    async def test_lock_held_until_build_thread_returns(
        self, state_manager, mock_runtime
    ):
        """Test a start queued behind a cancelled build waits for its thread."""
        consumed = []
        closed = threading.Event()
        mock_runtime.build.side_effect = self._slow_build(consumed, closed)
        stream_open_at_create = []

        def create(*args):
            stream_open_at_create.append(not closed.is_set())
            return "cid"

        mock_runtime.create_container.side_effect = create
        mock_runtime.inspect_container.return_value = {"Id": "cid"}

        build = asyncio.ensure_future(
            state_manager.build("mongo", "several users", io.StringIO())
        )
        await asyncio.sleep(0.12)
        start = asyncio.ensure_future(state_manager.start("mongo", "several users"))
        await asyncio.sleep(0)
        build.cancel()

        with pytest.raises(asyncio.CancelledError):
            await build
        await start

        assert stream_open_at_create == [False]
