"""FastAPI application exposing the pitstate lifecycle."""

# Standard library imports
from contextlib import asynccontextmanager

# Third-party imports
import structlog
import uvicorn
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

# Local application imports
from . import __version__
from .api import health, states
from .config import settings
from .dependencies import close_state_manager
from .models.errors import PitStateException
from .utils.error_handlers import (
    pitstate_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    general_exception_handler,
)
from .utils.logging import setup_logging

# Setup logging
setup_logging()
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info(
        "Starting pitstate API",
        version=__version__,
        docker_host=settings.docker_host,
        states_dir=settings.states_dir,
        providers=sorted(settings.state_providers),
    )

    yield

    logger.info("Shutting down pitstate API")
    try:
        close_state_manager()
    except Exception as e:
        logger.error("Error closing docker client", error=str(e))


app = FastAPI(
    title="pitstate",
    description="Disposable, deterministic backing services for integration tests",
    version=__version__,
    lifespan=lifespan,
)

# Register global error handlers
app.add_exception_handler(PitStateException, pitstate_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(ValidationError, validation_exception_handler)
app.add_exception_handler(Exception, general_exception_handler)

app.include_router(health.router, tags=["health"])
app.include_router(states.router, tags=["states"])


def run_server():
    logger.info(f"Starting HTTP server on {settings.api_host}:{settings.api_port}")
    uvicorn.run(
        "pitstate.main:app",
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run_server()
