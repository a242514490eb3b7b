"""State lifecycle services.

This package provides the state provisioning functionality:
- naming.py: Content-addressed image/container names
- archive.py: Build context packaging
- builder.py: Image builds with live log forwarding
- readiness.py: Log-pattern readiness detection
- manager.py: Build/start/stop lifecycle
"""

from .manager import StateManager
from .builder import ImageBuilder
from .readiness import ReadinessDetector
from .naming import context_path, image_name
from .archive import tar_directory

__all__ = [
    "StateManager",
    "ImageBuilder",
    "ReadinessDetector",
    "context_path",
    "image_name",
    "tar_directory",
]
