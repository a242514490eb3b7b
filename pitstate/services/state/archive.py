"""Build context packaging."""

import io
import os
import tarfile

import structlog

from ...models.errors import ArchiveError

logger = structlog.get_logger(__name__)


def tar_directory(root: str) -> bytes:
    """Pack the files below ``root`` into an uncompressed tar archive.

    Entries are named relative to ``root`` and added in sorted order so the
    same tree always yields the same member list. Directories themselves are
    not added; their files carry the path.

    Raises:
        ArchiveError: If ``root`` is missing or a file cannot be read.
    """
    if not os.path.isdir(root):
        raise ArchiveError(root, "not a directory")

    buffer = io.BytesIO()
    count = 0
    try:
        with tarfile.open(fileobj=buffer, mode="w") as tar:
            for dirpath, dirnames, filenames in os.walk(root, onerror=_raise):
                dirnames.sort()
                for filename in sorted(filenames):
                    full_path = os.path.join(dirpath, filename)
                    arcname = os.path.relpath(full_path, root)
                    tar.add(full_path, arcname=arcname, recursive=False)
                    count += 1
    except (OSError, tarfile.TarError) as e:
        raise ArchiveError(root, str(e))

    logger.debug("Archived build context", path=root, files=count)
    return buffer.getvalue()


def _raise(error: OSError) -> None:
    raise error
