"""Dependencies package for the pitstate API."""

from .services import get_state_manager, close_state_manager

__all__ = ["get_state_manager", "close_state_manager"]
