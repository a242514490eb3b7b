"""State lifecycle endpoints."""

import io

from fastapi import APIRouter, Depends
import structlog

from ..dependencies import get_state_manager
from ..models.errors import BuildError, ErrorDetail
from ..models.state import BuildResponse, StateContainer, StateStatus, StopResponse
from ..services.state import StateManager

logger = structlog.get_logger(__name__)
router = APIRouter(prefix="/states")

# Build output kept in error responses
_MAX_ERROR_OUTPUT = 4096


@router.post("/{provider}/{fixture}/build", response_model=BuildResponse)
async def build_state(
    provider: str,
    fixture: str,
    manager: StateManager = Depends(get_state_manager),
):
    """Build the image of a fixture and return the build log.

    The log is buffered and returned once the build has finished; the library
    and the CLI forward it live instead.
    """
    output = io.StringIO()
    try:
        name = await manager.build(provider, fixture, output)
    except BuildError as e:
        log = output.getvalue()
        if log:
            e.details.append(
                ErrorDetail(
                    field="output", message=log[-_MAX_ERROR_OUTPUT:], code="build_log"
                )
            )
        raise
    return BuildResponse(image_name=name, output=output.getvalue())


@router.post("/{provider}/{fixture}/start", response_model=StateContainer)
async def start_state(
    provider: str,
    fixture: str,
    manager: StateManager = Depends(get_state_manager),
):
    """Start a ready container from a built fixture image."""
    return await manager.start(provider, fixture)


@router.post("/{provider}/{fixture}/stop", response_model=StopResponse)
async def stop_state(
    provider: str,
    fixture: str,
    manager: StateManager = Depends(get_state_manager),
):
    """Remove the fixture's container."""
    container_id = await manager.stop(provider, fixture)
    return StopResponse(
        container_id=container_id, name=manager.name_for(provider, fixture)
    )


@router.get("/{provider}/{fixture}", response_model=StateStatus)
async def get_state_status(
    provider: str,
    fixture: str,
    manager: StateManager = Depends(get_state_manager),
):
    """Report whether a container currently holds the fixture's name."""
    container_id = await manager.status(provider, fixture)
    return StateStatus(
        provider=provider,
        fixture=fixture,
        name=manager.name_for(provider, fixture),
        running=container_id is not None,
        container_id=container_id,
    )
