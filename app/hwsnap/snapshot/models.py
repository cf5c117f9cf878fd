"""Snapshot result and archive entry models.

These records report what a capture or an expansion did. They are
returned to callers and rendered by the CLI.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class EntryType(str, Enum):
    """Type of an archive entry.

    Attributes:
        DIRECTORY: Directory entry.
        FILE: Regular file with content.
        SYMLINK: Symbolic link with a stored target.
        OTHER: Any other tar member type; ignored on expansion.
    """

    DIRECTORY = "directory"
    FILE = "file"
    SYMLINK = "symlink"
    OTHER = "other"


@dataclass(frozen=True, slots=True)
class ArchiveEntry:
    """A single member of a snapshot archive.

    Attributes:
        name: Path relative to the snapshot root.
        entry_type: Kind of entry.
        mode: Permission bits.
        size: Content length in bytes (0 for non-files).
        link_target: Stored target for symlinks, None otherwise.
    """

    name: str
    entry_type: EntryType
    mode: int
    size: int = 0
    link_target: str | None = None


@dataclass(slots=True)
class SnapshotResult:
    """Outcome of a snapshot capture.

    Attributes:
        out_path: Archive written.
        files: Regular files staged.
        symlinks: Symbolic links staged.
        directories: Directories created explicitly (possibly empty).
        entries: Number of entries written to the archive.
        skipped: Source paths whose content could not be read for lack of
            permission.
    """

    out_path: Path
    files: int = 0
    symlinks: int = 0
    directories: int = 0
    entries: int = 0
    skipped: list[str] = field(default_factory=list)


@dataclass(slots=True)
class ExpandResult:
    """Outcome of a snapshot expansion.

    Attributes:
        dest_path: Directory the snapshot was expanded into.
        files: Regular files written.
        symlinks: Symbolic links created.
        directories: Directory entries processed.
        ignored: Archive members of unsupported types.
    """

    dest_path: Path
    files: int = 0
    symlinks: int = 0
    directories: int = 0
    ignored: list[str] = field(default_factory=list)
