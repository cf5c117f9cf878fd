"""Exceptions raised by snapshot capture and expansion.

Every failure is surfaced to the immediate caller as one of these types.
Permission problems while copying a single pseudo-file during capture are
not errors: they are recorded in ``SnapshotResult.skipped``.
"""


class SnapshotError(Exception):
    """Base exception for snapshot errors."""


class PathError(SnapshotError):
    """Raised when a filesystem operation on a specific path fails.

    Attributes:
        path: The path the failing operation was working on.
    """

    def __init__(self, path: str, message: str) -> None:
        super().__init__(f"{path}: {message}")
        self.path = path


class ArchiveFormatError(SnapshotError):
    """Raised when a snapshot archive is corrupt, truncated or unsafe."""


class PreconditionError(SnapshotError):
    """Raised when a destination check fails before any work is done."""


class OutputExistsError(PreconditionError):
    """Raised when the snapshot output file already holds data."""


class DestinationNotEmptyError(PreconditionError):
    """Raised when the expansion target directory is not empty."""


class PlatformError(SnapshotError):
    """Raised when capture is requested on a platform without procfs/sysfs."""
