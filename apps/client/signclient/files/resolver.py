"""Expand file path patterns into the set of files to sign.

Each pattern is split into a directory part (default: the current
directory) and a name part that may hold glob wildcards. Both `/` and `\\`
separate directories, so Windows-style patterns such as `build\\*.exe`
resolve the same way on every platform. Only regular files directly inside
the directory match; there is no recursion.
"""

import logging
from collections.abc import Iterable
from pathlib import Path

from signclient.errors import NoFilesMatchedError
from signclient.files.types import ResolvedFileSet

logger = logging.getLogger(__name__)


def split_pattern(pattern: str) -> tuple[Path, str]:
    """Split a pattern into (directory, name-glob)."""
    normalised = pattern.replace("\\", "/")
    directory, _, name = normalised.rpartition("/")
    if not directory:
        return Path("."), name
    return Path(directory), name


def _expand(directory: Path, name: str) -> list[Path]:
    if not name or not directory.is_dir():
        return []
    return sorted(p for p in directory.glob(name) if p.is_file())


def resolve_files(patterns: Iterable[str]) -> ResolvedFileSet:
    """Resolve `patterns` in order into a ResolvedFileSet.

    Raises:
        DuplicateFileNameError: As soon as two matches share a base name,
            whether they come from the same pattern or from different ones.
        NoFilesMatchedError: If no pattern matched any file.
    """
    resolved = ResolvedFileSet()

    for pattern in patterns:
        directory, name = split_pattern(pattern)
        matches = _expand(directory, name)
        if not matches:
            logger.warning("No files match pattern: %s", pattern)
            continue

        for match in matches:
            resolved.add(match)

    if not resolved:
        raise NoFilesMatchedError("No files to sign")

    logger.info(
        "Resolved %d file(s): %s",
        len(resolved), ", ".join(str(p) for p in resolved.files),
    )
    return resolved
