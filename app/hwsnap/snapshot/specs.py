"""Catalogue of pseudo-file patterns captured in a snapshot.

Patterns here are written as absolute paths of the live system. They are
independent of the host's device topology, so a static list is enough.
Device-dependent patterns (PCI, network, GPU, block) are discovered at
capture time by the sibling modules.
"""

import glob
import os

# Glob patterns (``glob`` syntax) whose presence does not depend on
# runtime device discovery.
STATIC_GLOBS: tuple[str, ...] = (
    "/proc/cpuinfo",
    "/proc/meminfo",
    "/proc/self/mounts",
    "/sys/devices/system/cpu/cpu*/cache/index*/*",
    "/sys/devices/system/cpu/cpu*/topology/*",
    "/sys/devices/system/memory/block_size_bytes",
    "/sys/devices/system/memory/memory*/online",
    "/sys/devices/system/memory/memory*/state",
    "/sys/devices/system/node/has_*",
    "/sys/devices/system/node/online",
    "/sys/devices/system/node/possible",
    "/sys/devices/system/node/node*/cpu*",
    "/sys/devices/system/node/node*/distance",
    "/sys/devices/system/node/node*/meminfo",
    "/sys/devices/system/node/node*/memory*",
    "/sys/devices/system/node/node*/hugepages/hugepages-*/*",
)

# Directories always created in the staging tree, even if left empty
CREATE_PATHS: tuple[str, ...] = ("/sys/block",)

SYS_BLOCK_DIR = "/sys/block"
SYS_BUS_PCI_DEVICES_DIR = "/sys/bus/pci/devices"
SYS_CLASS_DIR = "/sys/class"

# Driver directories: only their names matter, not their content
PCI_DRIVER_GLOB = "/sys/bus/pci/drivers/*"

PCI_DEVICE_ATTRIBUTES: tuple[str, ...] = (
    "class",
    "device",
    "driver",
    "irq",
    "local_cpulist",
    "modalias",
    "numa_node",
    "revision",
    "vendor",
)

# "address" is left out on purpose: it identifies the host.
NET_DEVICE_ATTRIBUTES: tuple[str, ...] = ("addr_assign_type",)

GPU_DEVICE_ATTRIBUTES: tuple[str, ...] = ("device",)

# Path fragment of link targets for software-only network interfaces
VIRTUAL_NET_MARKER = "devices/virtual/net"


def source_path(path: str, root: str = "/") -> str:
    """Return the concrete location of an absolute path under ``root``."""
    if root in ("", "/"):
        return path
    return os.path.join(os.path.normpath(root), path.lstrip("/"))


def literal_spec(path: str) -> str:
    """Turn a concrete path into a glob pattern matching only itself."""
    return glob.escape(path)


def rooted(path: str, root: str = "/") -> str:
    """Re-anchor an absolute catalogue path under another source root.

    The root part is glob-escaped so that only the catalogue pattern's
    own wildcards are expanded.

    Args:
        path: Absolute path or glob pattern from the catalogue.
        root: Directory standing in for ``/``.

    Returns:
        The pattern anchored under ``root``.
    """
    if root in ("", "/"):
        return path
    return os.path.join(glob.escape(os.path.normpath(root)), path.lstrip("/"))


def static_globs(root: str = "/") -> list[str]:
    """Return the static catalogue anchored under ``root``."""
    return [rooted(pattern, root) for pattern in STATIC_GLOBS]
