"""Pieces shared by the signing client and the signing server.

Public API:
    pack(files, destination) -> list[str]
    pack_bytes(files) -> bytes
    unpack(source, target_dir) -> set[str]
    split_subcommands(subcommands) -> list[str]
    SignRequest, SignResult
"""

from signcommon.archive import ArchiveError, pack, pack_bytes, unpack
from signcommon.schemas import SignRequest, SignResult, split_subcommands

__all__ = [
    "ArchiveError",
    "SignRequest",
    "SignResult",
    "pack",
    "pack_bytes",
    "split_subcommands",
    "unpack",
]
