"""Local archive storage for the signing server.

Uploaded request archives and generated result archives live flat in one
storage directory, addressed by file name. Signing runs each get their own
randomly named directory under the work directory, so concurrent requests
never share mutable state beyond the storage namespace.

Security:
  - `validate_name()` rejects any name containing a path separator, `..`
    or a null byte before it is joined to the storage directory.
"""

from __future__ import annotations

import logging
import shutil
import uuid
from pathlib import Path
from typing import BinaryIO

from fastapi import Depends

from signserver.core.config import Settings, get_settings

logger = logging.getLogger(__name__)

_COPY_CHUNK_SIZE = 1024 * 1024


class InvalidArchiveName(ValueError):
    """Raised for names that could address files outside the storage area."""


def validate_name(name: str) -> None:
    """Reject names that could be used for path traversal.

    Raises:
        InvalidArchiveName: If the name is empty or unsafe.
    """
    if not name:
        raise InvalidArchiveName("Archive name must not be empty")
    if name in (".", "..") or ".." in name:
        raise InvalidArchiveName(f"Invalid archive name, path traversal detected: {name!r}")
    if "/" in name or "\\" in name:
        raise InvalidArchiveName(f"Invalid archive name, path separator detected: {name!r}")
    if "\x00" in name:
        raise InvalidArchiveName(f"Invalid archive name, null byte detected: {name!r}")


class ArchiveStorage:
    """Name-addressed archive files plus per-run working directories."""

    def __init__(self, storage_dir: Path, work_dir: Path):
        self.storage_dir = Path(storage_dir)
        self.work_dir = Path(work_dir)
        self.storage_dir.mkdir(parents=True, exist_ok=True)

    def path_for(self, name: str) -> Path:
        validate_name(name)
        return self.storage_dir / name

    def exists(self, name: str) -> bool:
        return self.path_for(name).is_file()

    def save(self, name: str, stream: BinaryIO) -> Path:
        """Write `stream` under `name`, replacing any existing file."""
        path = self.path_for(name)
        with open(path, "wb") as out:
            shutil.copyfileobj(stream, out, _COPY_CHUNK_SIZE)
        logger.info("File saved successfully: %s", path)
        return path

    def remove(self, name: str) -> bool:
        """Delete `name` if present. Returns whether a file was removed."""
        path = self.path_for(name)
        try:
            path.unlink()
        except FileNotFoundError:
            logger.warning("File not found for removal: %s", path)
            return False
        logger.info("File removed: %s", path)
        return True

    def create_work_dir(self) -> Path:
        """Create a fresh, uniquely named working directory."""
        path = self.work_dir / uuid.uuid4().hex
        path.mkdir(parents=True)
        logger.info("Directory created: %s", path)
        return path


def get_storage(settings: Settings = Depends(get_settings)) -> ArchiveStorage:
    return ArchiveStorage(Path(settings.storage_dir), Path(settings.work_dir))
