"""Service dependency injection for the pitstate API."""

# Standard library imports
from functools import lru_cache

# Third-party imports
import structlog

# Local application imports
from ..models.errors import ServiceUnavailableError
from ..services.container.utils import DOCKER_ERRORS, describe_error
from ..services.state import StateManager

logger = structlog.get_logger(__name__)


@lru_cache()
def _create_state_manager() -> StateManager:
    manager = StateManager()
    logger.info("State manager created", host=manager.host)
    return manager


def get_state_manager() -> StateManager:
    """Get the shared state manager instance."""
    try:
        return _create_state_manager()
    except DOCKER_ERRORS as e:
        logger.error("Cannot connect to docker daemon", error=str(e))
        raise ServiceUnavailableError(
            "docker", f"Cannot connect to docker: {describe_error(e)}"
        )


def close_state_manager() -> None:
    """Close the shared state manager if one was created."""
    if _create_state_manager.cache_info().currsize:
        _create_state_manager().close()
        _create_state_manager.cache_clear()
