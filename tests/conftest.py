"""Pytest configuration and shared fixtures."""

import os
from unittest.mock import MagicMock

import pytest

# Set test environment before importing config
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("LOG_FORMAT", "console")

from pitstate.config import StateProviderConfig
from pitstate.services.container.runtime import DockerRuntime
from pitstate.services.state import StateManager

CONTAINER_ID = "4f1c2d3e4b5a69788796a5b4c3d2e1f00112233445566778899aabbccddeeff0"


@pytest.fixture
def mongo_config():
    """Provider config shaped like a mongo state."""
    return StateProviderConfig(
        cmd=["--nojournal"],
        ports=["27017:30000"],
        ready_pattern=".*waiting for connections.*",
        ready_timeout="1s",
    )


@pytest.fixture
def mock_runtime():
    """Mock docker runtime with a container that is ready at once."""
    runtime = MagicMock(spec=DockerRuntime)
    runtime.build.return_value = iter(
        [
            {"stream": "Step 1/1 : FROM mongo\n"},
            {"stream": " ---> 0123456789ab\n"},
            {"stream": "Successfully built 0123456789ab\n"},
        ]
    )
    runtime.create_container.return_value = CONTAINER_ID
    runtime.start_container.return_value = None
    runtime.logs.return_value = b"[initandlisten] waiting for connections on port 27017\n"
    runtime.inspect_container.return_value = {"Id": CONTAINER_ID, "State": {"Running": True}}
    runtime.list_containers.return_value = []
    runtime.remove_container.return_value = None
    runtime.ping.return_value = True
    return runtime


@pytest.fixture
def states_dir(tmp_path):
    """States directory with a buildable mongo fixture."""
    fixture = tmp_path / "mongo" / "'several users'"
    fixture.mkdir(parents=True)
    (fixture / "Dockerfile").write_text("FROM mongo\nCOPY seed.js /docker-entrypoint-initdb.d/\n")
    (fixture / "seed.js").write_text("db.users.insert({name: 'a'})\n")
    return tmp_path


@pytest.fixture
def state_manager(mock_runtime, states_dir, mongo_config):
    """StateManager over the mock runtime."""
    return StateManager(
        runtime=mock_runtime,
        states_dir=str(states_dir),
        providers={"mongo": mongo_config},
        host="192.168.59.103",
        poll_interval=0.01,
    )
