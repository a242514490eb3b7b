"""Health check endpoints."""

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
import structlog

from .. import __version__
from ..dependencies import get_state_manager
from ..services.state import StateManager

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.get("/health", summary="Basic health check")
async def basic_health_check(manager: StateManager = Depends(get_state_manager)):
    """Report whether the docker daemon answers."""
    docker_ok = await manager.ping()
    content = {
        "status": "healthy" if docker_ok else "unhealthy",
        "version": __version__,
        "service": "pitstate",
        "docker": "reachable" if docker_ok else "unreachable",
    }
    if not docker_ok:
        return JSONResponse(status_code=503, content=content)
    return content
