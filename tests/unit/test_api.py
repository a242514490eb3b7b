"""Unit tests for the HTTP API."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from pitstate.dependencies import get_state_manager
from pitstate.main import app
from pitstate.models.errors import (
    BuildError,
    ConfigNotFoundError,
    ContainerNotFoundError,
    ReadinessTimeoutError,
)
from pitstate.models.state import StateContainer
from pitstate.services.state import StateManager

NAME = "pitstate_mongo_339b8c46ccc926ca8ae09db899fb0c26"


@pytest.fixture
def manager():
    mock = MagicMock(spec=StateManager)
    mock.name_for.return_value = NAME
    mock.ping = AsyncMock(return_value=True)
    mock.build = AsyncMock(return_value=NAME)
    mock.start = AsyncMock(
        return_value=StateContainer(
            id="abc123", host="localhost", name=NAME, ports={"27017/tcp": 30000}
        )
    )
    mock.stop = AsyncMock(return_value="abc123")
    mock.status = AsyncMock(return_value=None)
    return mock


@pytest.fixture
def client(manager):
    app.dependency_overrides[get_state_manager] = lambda: manager
    with TestClient(app, raise_server_exceptions=False) as test_client:
        yield test_client
    app.dependency_overrides.clear()


class TestHealth:
    def test_healthy(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["docker"] == "reachable"

    def test_unhealthy(self, client, manager):
        manager.ping.return_value = False
        response = client.get("/health")
        assert response.status_code == 503
        assert response.json()["docker"] == "unreachable"


class TestStates:
    def test_build(self, client, manager):
        """Test the build log is returned with the image name."""

        async def build(provider, fixture, output):
            output.write("Successfully built 0123456789ab\n")
            return NAME

        manager.build.side_effect = build

        response = client.post("/states/mongo/several users/build")

        assert response.status_code == 200
        data = response.json()
        assert data["image_name"] == NAME
        assert "Successfully built" in data["output"]
        assert manager.build.call_args.args[:2] == ("mongo", "several users")

    def test_build_failure_includes_log(self, client, manager):
        """Test a failed build reports the partial log."""

        async def build(provider, fixture, output):
            output.write("Step 1/2 : RUN false\n")
            raise BuildError(NAME, "returned a non-zero code: 1")

        manager.build.side_effect = build

        response = client.post("/states/mongo/several users/build")

        assert response.status_code == 502
        data = response.json()
        assert data["error_type"] == "build_failed"
        output = [d for d in data["details"] if d["field"] == "output"]
        assert output[0]["message"] == "Step 1/2 : RUN false\n"

    def test_start(self, client, manager):
        response = client.post("/states/mongo/several users/start")

        assert response.status_code == 200
        assert response.json() == {
            "id": "abc123",
            "host": "localhost",
            "name": NAME,
            "ports": {"27017/tcp": 30000},
        }
        manager.start.assert_awaited_once_with("mongo", "several users")

    def test_start_unknown_provider(self, client, manager):
        manager.start.side_effect = ConfigNotFoundError("postgres")

        response = client.post("/states/postgres/empty/start")

        assert response.status_code == 404
        data = response.json()
        assert data["error_type"] == "configuration"
        assert "postgres" in data["error"]
        assert data["request_id"]

    def test_start_timeout(self, client, manager):
        manager.start.side_effect = ReadinessTimeoutError("abc123", 1.0, "ready")

        response = client.post("/states/mongo/several users/start")

        assert response.status_code == 504
        assert response.json()["error_type"] == "timeout"

    def test_stop(self, client):
        response = client.post("/states/mongo/several users/stop")

        assert response.status_code == 200
        assert response.json() == {"container_id": "abc123", "name": NAME}

    def test_stop_missing(self, client, manager):
        manager.stop.side_effect = ContainerNotFoundError(NAME)

        response = client.post("/states/mongo/several users/stop")

        assert response.status_code == 404
        assert response.json()["error_type"] == "resource_not_found"

    def test_status(self, client, manager):
        manager.status.return_value = "abc123"

        response = client.get("/states/mongo/several users")

        assert response.status_code == 200
        assert response.json() == {
            "provider": "mongo",
            "fixture": "several users",
            "name": NAME,
            "running": True,
            "container_id": "abc123",
        }

    def test_unexpected_error(self, client, manager):
        manager.status.side_effect = RuntimeError("boom")

        response = client.get("/states/mongo/several users")

        assert response.status_code == 500
        assert response.json()["error"] == "An unexpected error occurred"
