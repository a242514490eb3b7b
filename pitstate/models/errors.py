"""Error models and exception classes for pitstate."""

import time
from typing import Optional, List
from pydantic import BaseModel, Field
from enum import Enum


class ErrorType(str, Enum):
    """Error type enumeration."""

    CONFIGURATION = "configuration"
    VALIDATION = "validation"
    ARCHIVE = "archive"
    BUILD_FAILED = "build_failed"
    CONTAINER_CREATE = "container_create"
    CONTAINER_START = "container_start"
    RESOURCE_NOT_FOUND = "resource_not_found"
    TIMEOUT = "timeout"
    INTERNAL_SERVER = "internal_server"
    SERVICE_UNAVAILABLE = "service_unavailable"
    EXTERNAL_SERVICE = "external_service"


class ErrorDetail(BaseModel):
    """Detailed error information."""

    field: Optional[str] = Field(None, description="Field name for validation errors")
    message: str = Field(..., description="Human-readable error message")
    code: Optional[str] = Field(None, description="Machine-readable error code")


class ErrorResponse(BaseModel):
    """Standardized error response model."""

    error: str = Field(..., description="Main error message")
    error_type: ErrorType = Field(..., description="Error category")
    details: Optional[List[ErrorDetail]] = Field(
        None, description="Additional error details"
    )
    request_id: Optional[str] = Field(
        None, description="Request identifier for tracking"
    )
    timestamp: float = Field(default_factory=time.time, description="Error timestamp")

    class Config:
        use_enum_values = True


# Custom Exception Classes


class PitStateException(Exception):
    """Base exception for pitstate."""

    def __init__(
        self,
        message: str,
        error_type: ErrorType = ErrorType.INTERNAL_SERVER,
        status_code: int = 500,
        details: Optional[List[ErrorDetail]] = None,
        request_id: Optional[str] = None,
    ):
        self.message = message
        self.error_type = error_type
        self.status_code = status_code
        self.details = details or []
        self.request_id = request_id
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert exception to error response model."""
        return ErrorResponse(
            error=self.message,
            error_type=self.error_type,
            details=self.details if self.details else None,
            request_id=self.request_id,
        )


class ConfigNotFoundError(PitStateException):
    """No configuration is registered for a state provider."""

    def __init__(self, provider: str, **kwargs):
        self.provider = provider
        super().__init__(
            message=f"No state provider configuration found for '{provider}'",
            error_type=ErrorType.CONFIGURATION,
            status_code=404,
            **kwargs,
        )


class ArchiveError(PitStateException):
    """The fixture directory could not be packaged."""

    def __init__(self, path: str, reason: str, **kwargs):
        self.path = path
        super().__init__(
            message=f"Failed to archive build context {path}: {reason}",
            error_type=ErrorType.ARCHIVE,
            status_code=400,
            **kwargs,
        )


class BuildError(PitStateException):
    """The daemon reported a failed image build."""

    def __init__(self, image_name: str, reason: str, **kwargs):
        self.image_name = image_name
        super().__init__(
            message=f"Failed to build image '{image_name}': {reason}",
            error_type=ErrorType.BUILD_FAILED,
            status_code=502,
            **kwargs,
        )


class ContainerCreateError(PitStateException):
    """The container could not be created from the state image."""

    def __init__(self, image_name: str, reason: str, **kwargs):
        self.image_name = image_name
        super().__init__(
            message=(
                f"Failed to create container from image '{image_name}' "
                f"(was the state built?): {reason}"
            ),
            error_type=ErrorType.CONTAINER_CREATE,
            status_code=502,
            **kwargs,
        )


class ContainerStartError(PitStateException):
    """The created container could not be started."""

    def __init__(self, image_name: str, reason: str, **kwargs):
        self.image_name = image_name
        super().__init__(
            message=f"Failed to start container '{image_name}': {reason}",
            error_type=ErrorType.CONTAINER_START,
            status_code=502,
            **kwargs,
        )


class ReadinessTimeoutError(PitStateException):
    """The ready pattern did not show up in the container output in time."""

    def __init__(self, container_id: str, timeout: float, pattern: str, **kwargs):
        self.container_id = container_id
        self.timeout = timeout
        super().__init__(
            message=(
                f"Container {container_id[:12]} did not match ready pattern "
                f"{pattern!r} within {timeout:g}s"
            ),
            error_type=ErrorType.TIMEOUT,
            status_code=504,
            **kwargs,
        )


class LogFetchError(PitStateException):
    """Container output could not be read while waiting for readiness."""

    def __init__(self, container_id: str, reason: str, **kwargs):
        self.container_id = container_id
        super().__init__(
            message=f"Failed to read logs of container {container_id[:12]}: {reason}",
            error_type=ErrorType.EXTERNAL_SERVICE,
            status_code=502,
            **kwargs,
        )


class ContainerNotFoundError(PitStateException):
    """No container holds the name derived for a state."""

    def __init__(self, name: str, **kwargs):
        self.name = name
        super().__init__(
            message=f"No container named '{name}' found",
            error_type=ErrorType.RESOURCE_NOT_FOUND,
            status_code=404,
            **kwargs,
        )


class ServiceUnavailableError(PitStateException):
    """Service unavailable errors."""

    def __init__(self, service: str, message: str = None, **kwargs):
        error_message = message or f"{service} service is currently unavailable"
        super().__init__(
            message=error_message,
            error_type=ErrorType.SERVICE_UNAVAILABLE,
            status_code=503,
            **kwargs,
        )


class ContainerRemoveError(PitStateException):
    """The daemon refused to remove a state container."""

    def __init__(self, name: str, reason: str, **kwargs):
        self.name = name
        super().__init__(
            message=f"Failed to remove container '{name}': {reason}",
            error_type=ErrorType.EXTERNAL_SERVICE,
            status_code=502,
            **kwargs,
        )
