"""State data models."""

from typing import Dict, Optional

from pydantic import BaseModel, Field


class StateContainer(BaseModel):
    """A running, ready state container."""

    id: str = Field(..., description="Container identifier assigned by the daemon")
    host: str = Field(..., description="Host the published ports are reachable on")
    name: str = Field(..., description="Container (and image) name")
    ports: Dict[str, Optional[int]] = Field(
        default_factory=dict, description="Container port to host port table"
    )


class BuildResponse(BaseModel):
    """Result of building a state image."""

    image_name: str
    output: str = Field("", description="Build log as streamed by the daemon")


class StopResponse(BaseModel):
    """Result of removing a state container."""

    container_id: str
    name: str


class StateStatus(BaseModel):
    """Whether a container currently holds the state's name."""

    provider: str
    fixture: str
    name: str
    running: bool
    container_id: Optional[str] = None
