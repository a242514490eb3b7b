"""Data models for pitstate."""

from .state import (
    StateContainer,
    BuildResponse,
    StopResponse,
    StateStatus,
)
from .errors import (
    ErrorType,
    ErrorDetail,
    ErrorResponse,
    PitStateException,
    ConfigNotFoundError,
    ArchiveError,
    BuildError,
    ContainerCreateError,
    ContainerStartError,
    ReadinessTimeoutError,
    LogFetchError,
    ContainerNotFoundError,
    ContainerRemoveError,
    ServiceUnavailableError,
)

__all__ = [
    "StateContainer",
    "BuildResponse",
    "StopResponse",
    "StateStatus",
    "ErrorType",
    "ErrorDetail",
    "ErrorResponse",
    "PitStateException",
    "ConfigNotFoundError",
    "ArchiveError",
    "BuildError",
    "ContainerCreateError",
    "ContainerStartError",
    "ReadinessTimeoutError",
    "LogFetchError",
    "ContainerNotFoundError",
    "ContainerRemoveError",
    "ServiceUnavailableError",
]
