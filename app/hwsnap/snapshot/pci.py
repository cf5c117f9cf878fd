"""PCI device tree discovery.

``/sys/bus/pci/devices`` lists only devices on buses the kernel exposes
directly; devices behind PCI bridges live in nested directories of the
bridge's device directory. The walker follows bridges breadth-first so
that every reachable device is captured, however deep the tree is.
"""

import logging
import os
from collections import deque

from hwsnap.snapshot.address import is_pci_address
from hwsnap.snapshot.specs import (
    PCI_DEVICE_ATTRIBUTES,
    PCI_DRIVER_GLOB,
    SYS_BUS_PCI_DEVICES_DIR,
    literal_spec,
    rooted,
    source_path,
)

logger = logging.getLogger(__name__)


class PCIBusWalker:
    """Walks the PCI device tree and collects per-device FileSpecs.

    Bridge detection is structural: a device directory holding at least
    one immediate subdirectory named like a PCI address is treated as a
    bridge to a secondary bus. This over-approximates in favour of
    capturing everything and does not look at the device class.

    Args:
        root: Source root standing in for ``/``.
        attributes: Attribute files collected for each device.
    """

    def __init__(
        self,
        root: str = "/",
        attributes: tuple[str, ...] = PCI_DEVICE_ATTRIBUTES,
    ) -> None:
        self._root = root
        self._attributes = attributes
        self.bus_roots_visited: list[str] = []

    @property
    def start_dir(self) -> str:
        """Canonical bus directory the walk starts from."""
        return source_path(SYS_BUS_PCI_DEVICES_DIR, self._root)

    def walk(self) -> list[str]:
        """Discover all reachable PCI devices.

        A device reachable both from the flat bus directory and from its
        bridge contributes its attribute specs only once.

        Returns:
            FileSpecs for every device entry and its attribute files.
        """
        self.bus_roots_visited = []
        seen: set[str] = set()
        queue: deque[str] = deque([self.start_dir])
        specs: dict[str, None] = {}

        while queue:
            bus_root = queue.popleft()
            if bus_root in seen:
                continue
            seen.add(bus_root)
            self.bus_roots_visited.append(bus_root)

            bus_specs, bridges = self.scan_bus(bus_root)
            specs.update(dict.fromkeys(bus_specs))
            queue.extend(bridges)

        logger.debug(
            "PCI walk visited %d bus roots, produced %d file specs",
            len(self.bus_roots_visited),
            len(specs),
        )
        return list(specs)

    def scan_bus(self, bus_root: str) -> tuple[list[str], list[str]]:
        """Scan a single bus directory.

        Args:
            bus_root: Directory whose address-named entries are devices.

        Returns:
            Tuple of (FileSpecs, resolved device directories of bridges).
        """
        try:
            names = os.listdir(bus_root)
        except OSError as e:
            logger.debug("Cannot list PCI bus root %s: %s", bus_root, e)
            return [], []

        specs: list[str] = []
        bridges: list[str] = []

        for name in names:
            # Driver registries and control files share the directory
            if not is_pci_address(name):
                continue

            entry_path = os.path.join(bus_root, name)
            device_dir = resolve_device_dir(bus_root, name)
            if device_dir is None:
                continue

            specs.append(literal_spec(entry_path))
            specs.extend(
                literal_spec(os.path.join(device_dir, attr)) for attr in self._attributes
            )

            if is_pci_bridge(device_dir):
                bridges.append(device_dir)

        return specs, bridges


def resolve_device_dir(bus_root: str, name: str) -> str | None:
    """Resolve a bus entry to its device directory.

    Symlinks are resolved lexically against the bus root; real directories
    are returned as-is.

    Args:
        bus_root: Directory containing the entry.
        name: Entry name.

    Returns:
        Device directory path, or None if the entry cannot be resolved.
    """
    entry_path = os.path.join(bus_root, name)
    try:
        if not os.path.islink(entry_path):
            os.lstat(entry_path)
            return entry_path
        target = os.readlink(entry_path)
    except OSError as e:
        logger.debug("Cannot resolve PCI entry %s: %s", entry_path, e)
        return None
    return os.path.normpath(os.path.join(bus_root, target))


def is_pci_bridge(device_dir: str) -> bool:
    """Check whether a device directory exposes a secondary bus."""
    try:
        with os.scandir(device_dir) as it:
            for entry in it:
                if entry.is_dir(follow_symlinks=False) and is_pci_address(entry.name):
                    return True
    except OSError:
        return False
    return False


def pci_globs(root: str = "/") -> list[str]:
    """Return the FileSpecs for PCI drivers and the whole device tree."""
    return [rooted(PCI_DRIVER_GLOB, root), *PCIBusWalker(root).walk()]
