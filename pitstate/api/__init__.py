"""API endpoints for pitstate."""

from . import health, states

__all__ = ["health", "states"]
