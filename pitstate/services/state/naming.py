"""Content-addressed names for state images and containers.

The name of a state is derived from the provider and the resolved path of
its fixture directory, so the same fixture always maps to the same image
and container name. Moving a fixture directory changes its name.
"""

import hashlib
import os

IMAGE_PREFIX = "pitstate"


def context_path(base_dir: str, provider: str, fixture: str) -> str:
    """Build context directory for a fixture.

    The fixture segment is wrapped in single quotes, matching how fixture
    directories are laid out on disk (``states/mongo/'several users'``).
    """
    return os.path.join(os.path.abspath(base_dir), provider, f"'{fixture}'")


def image_name(provider: str, path: str) -> str:
    """``pitstate_<provider>_<md5 of path>``; also used as the container name."""
    digest = hashlib.md5(path.encode("utf-8")).hexdigest()
    return f"{IMAGE_PREFIX}_{provider}_{digest}"
