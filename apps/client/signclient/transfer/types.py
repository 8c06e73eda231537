"""Types for the transfer client."""

from dataclasses import dataclass, field
from pathlib import Path

from signcommon.schemas import SignResult


@dataclass
class TransferReport:
    """Outcome of a successful sign round trip.

    updated_files lists the original paths that were overwritten with their
    signed copies.
    """

    archive_name: str
    result: SignResult
    updated_files: list[Path] = field(default_factory=list)
