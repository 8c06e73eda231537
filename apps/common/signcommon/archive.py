"""Zip container used as the unit of transfer in both directions.

The client packs the files to sign, the server unpacks them into a working
directory, signs them in place, and packs the results for the client to
unpack again. Both ends go through the functions below so they always agree
on the format.

Entries produced by `pack()` are flat: only the base name of each source
file is stored, and its last-modified time travels with it (zip stores
timestamps at two-second resolution). Modification times before 1980, which
zip cannot represent, are stored as 1980-01-01.

`unpack()` is the generic inverse. It tolerates any entry order, skips
directory entries and entries with an empty name, and recreates nested
entry paths under the target directory. Entry names that would escape the
target directory are rejected.
"""

import io
import logging
import os
import shutil
import time
import zipfile
from collections.abc import Iterable
from pathlib import Path, PurePosixPath
from typing import BinaryIO, Union

logger = logging.getLogger(__name__)

# Maximum deflate effort
COMPRESS_LEVEL = 9

_COPY_CHUNK_SIZE = 64 * 1024

ArchiveTarget = Union[str, os.PathLike, BinaryIO]


class ArchiveError(Exception):
    """Raised when an archive entry cannot be safely extracted."""


def pack(files: Iterable[Path], destination: ArchiveTarget) -> list[str]:
    """Write `files` into a single zip container at `destination`.

    Files are streamed in the order given, each into an entry named by its
    base name. Returns the entry names written.

    Any I/O error aborts the whole operation. When `destination` is a path
    the caller owns the partially written file and must delete it.
    """
    entry_names: list[str] = []

    with zipfile.ZipFile(
        destination,
        mode="w",
        compression=zipfile.ZIP_DEFLATED,
        compresslevel=COMPRESS_LEVEL,
        strict_timestamps=False,
    ) as archive:
        for file_path in files:
            file_path = Path(file_path)
            # ZipFile.write records the file's mtime and streams its content
            archive.write(file_path, arcname=file_path.name)
            entry_names.append(file_path.name)

    logger.debug("Packed %d entries: %s", len(entry_names), ", ".join(entry_names))
    return entry_names


def pack_bytes(files: Iterable[Path]) -> bytes:
    """Return the zip container for `files` as bytes."""
    buffer = io.BytesIO()
    pack(files, buffer)
    return buffer.getvalue()


def unpack(source: ArchiveTarget, target_dir: Path) -> set[str]:
    """Extract every file entry of `source` under `target_dir`.

    Creates `target_dir` (and any intermediate directories implied by entry
    names) when absent. Restores each entry's recorded modification time.

    Returns the set of written names, relative to `target_dir`, using `/`
    as separator.

    Raises:
        ArchiveError: If an entry name is absolute or climbs out of
            `target_dir`.
    """
    target_dir = Path(target_dir)
    target_dir.mkdir(parents=True, exist_ok=True)
    written: set[str] = set()

    with zipfile.ZipFile(source, mode="r") as archive:
        for info in archive.infolist():
            if not info.filename or info.is_dir():
                continue

            relative = _safe_entry_path(info.filename)
            output_path = target_dir.joinpath(*relative.parts)
            output_path.parent.mkdir(parents=True, exist_ok=True)

            with archive.open(info) as entry, open(output_path, "wb") as out:
                shutil.copyfileobj(entry, out, _COPY_CHUNK_SIZE)

            mtime = time.mktime(info.date_time + (0, 0, -1))
            os.utime(output_path, (mtime, mtime))
            written.add(relative.as_posix())

    logger.debug("Unpacked %d entries into %s", len(written), target_dir)
    return written


def _safe_entry_path(name: str) -> PurePosixPath:
    """Normalise an entry name and reject anything outside the target."""
    normalised = name.replace("\\", "/")
    path = PurePosixPath(normalised)

    if path.is_absolute() or (path.parts and path.parts[0].endswith(":")):
        raise ArchiveError(f"Absolute entry name in archive: {name!r}")
    if ".." in path.parts:
        raise ArchiveError(f"Entry name escapes the target directory: {name!r}")
    if "\x00" in normalised:
        raise ArchiveError(f"Null byte in entry name: {name!r}")

    parts = [part for part in path.parts if part not in ("", ".")]
    if not parts:
        raise ArchiveError(f"Entry name has no file component: {name!r}")
    return PurePosixPath(*parts)
