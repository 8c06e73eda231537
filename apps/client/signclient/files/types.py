"""Types for local file resolution."""

from dataclasses import dataclass, field
from pathlib import Path

from signclient.errors import DuplicateFileNameError


@dataclass
class ResolvedFileSet:
    """Files selected for signing, keyed by base name.

    directories maps each base name to the directory it was found in.
    Base names are unique: the signed copies come back in a flat archive
    and are matched to their originals by name alone.
    """

    directories: dict[str, Path] = field(default_factory=dict)

    def add(self, file_path: Path) -> None:
        """Record a matched file under the directory that holds it.

        Raises:
            DuplicateFileNameError: If the base name is already present.
        """
        name = file_path.name
        if name in self.directories:
            raise DuplicateFileNameError(name, str(file_path))
        self.directories[name] = file_path.parent

    def source_path(self, name: str) -> Path:
        """Return the original location of the file with base name `name`."""
        return self.directories[name] / name

    @property
    def files(self) -> list[Path]:
        """Source paths in the order they were resolved."""
        return [directory / name for name, directory in self.directories.items()]

    def __contains__(self, name: object) -> bool:
        return name in self.directories

    def __len__(self) -> int:
        return len(self.directories)
