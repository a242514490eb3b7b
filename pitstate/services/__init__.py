"""Services for pitstate."""

from .state import StateManager

__all__ = ["StateManager"]
