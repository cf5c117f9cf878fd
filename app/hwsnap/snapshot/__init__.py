"""Snapshot capture and expansion.

This module builds portable archives of the /proc and /sys pseudo-files
describing the host's hardware, and restores them into a directory that
can stand in for the root filesystem.
"""

from hwsnap.snapshot.address import PCIAddress, is_pci_address, parse_pci_address
from hwsnap.snapshot.create import Snapshotter, create_snapshot, default_snapshot_name
from hwsnap.snapshot.devclass import DeviceEntry, clone_content_by_class
from hwsnap.snapshot.errors import (
    ArchiveFormatError,
    DestinationNotEmptyError,
    OutputExistsError,
    PathError,
    PlatformError,
    PreconditionError,
    SnapshotError,
)
from hwsnap.snapshot.expand import expand_snapshot, list_snapshot
from hwsnap.snapshot.models import ArchiveEntry, EntryType, ExpandResult, SnapshotResult
from hwsnap.snapshot.pci import PCIBusWalker

__all__ = [
    "ArchiveEntry",
    "ArchiveFormatError",
    "DestinationNotEmptyError",
    "DeviceEntry",
    "EntryType",
    "ExpandResult",
    "OutputExistsError",
    "PCIAddress",
    "PCIBusWalker",
    "PathError",
    "PlatformError",
    "PreconditionError",
    "SnapshotError",
    "SnapshotResult",
    "Snapshotter",
    "clone_content_by_class",
    "create_snapshot",
    "default_snapshot_name",
    "expand_snapshot",
    "is_pci_address",
    "list_snapshot",
    "parse_pci_address",
]
