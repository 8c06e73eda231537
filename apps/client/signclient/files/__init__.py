"""Local file resolution for sign requests.

Public API:
    resolve_files(patterns) -> ResolvedFileSet
"""

from signclient.files.resolver import resolve_files
from signclient.files.types import ResolvedFileSet

__all__ = ["ResolvedFileSet", "resolve_files"]
