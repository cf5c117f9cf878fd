"""Device-class cloning.

Each entry in ``/sys/class/<class>`` is a symbolic link named after a
logical device (``eth0``, ``card0``) pointing at the backing device
directory somewhere under ``/sys/devices``. Cloning a class means copying
the accepted links and a chosen set of attribute files from each backing
directory.
"""

import logging
import os
from dataclasses import dataclass
from typing import Protocol

from hwsnap.snapshot.specs import (
    GPU_DEVICE_ATTRIBUTES,
    NET_DEVICE_ATTRIBUTES,
    SYS_CLASS_DIR,
    VIRTUAL_NET_MARKER,
    literal_spec,
    source_path,
)

logger = logging.getLogger(__name__)


class EntryFilter(Protocol):
    """Predicate deciding whether a class entry is collected.

    Receives either the entry name or its raw link target, depending on
    which filter slot it is used in.
    """

    def __call__(self, value: str) -> bool: ...


def accept_all(_value: str) -> bool:
    """Filter that accepts every entry."""
    return True


@dataclass(frozen=True, slots=True)
class DeviceEntry:
    """A symlink found in a device-class directory.

    Attributes:
        name: Entry name (logical device name).
        link: Raw link target as stored in the filesystem.
        path: Full path of the symlink itself.
        target: Backing device directory, resolved lexically.
    """

    name: str
    link: str
    path: str
    target: str


def list_device_entries(
    class_dir: str,
    name_filter: EntryFilter = accept_all,
    link_filter: EntryFilter = accept_all,
) -> list[DeviceEntry]:
    """List the entries of a device-class directory accepted by both filters.

    The name filter runs before the link is read. Entries whose link cannot
    be read are skipped. A missing class directory yields no entries.

    Args:
        class_dir: Directory such as ``/sys/class/net``.
        name_filter: Predicate on the entry name.
        link_filter: Predicate on the raw link target.

    Returns:
        Accepted entries, in directory listing order.
    """
    try:
        names = os.listdir(class_dir)
    except OSError as e:
        logger.debug("Cannot list device class directory %s: %s", class_dir, e)
        return []

    entries: list[DeviceEntry] = []
    for name in names:
        if not name_filter(name):
            continue

        path = os.path.join(class_dir, name)
        try:
            link = os.readlink(path)
        except OSError:
            logger.debug("Skipping non-link class entry %s", path)
            continue

        if not link_filter(link):
            continue

        target = os.path.normpath(os.path.join(class_dir, link))
        entries.append(DeviceEntry(name=name, link=link, path=path, target=target))

    return entries


def clone_content_by_class(
    dev_class: str,
    attributes: tuple[str, ...] | list[str],
    name_filter: EntryFilter = accept_all,
    link_filter: EntryFilter = accept_all,
    *,
    root: str = "/",
) -> list[str]:
    """Build the FileSpecs needed to clone a device class.

    For every accepted entry this yields the class symlink itself, then one
    spec per attribute below the backing device directory.

    Args:
        dev_class: Class name under ``/sys/class`` (e.g. ``net``).
        attributes: Attribute paths relative to the backing directory.
        name_filter: Predicate on the entry name.
        link_filter: Predicate on the raw link target.
        root: Source root standing in for ``/``.

    Returns:
        Glob patterns to capture.
    """
    class_dir = source_path(os.path.join(SYS_CLASS_DIR, dev_class), root)
    specs: list[str] = []

    for entry in list_device_entries(class_dir, name_filter, link_filter):
        specs.append(literal_spec(entry.path))
        specs.extend(literal_spec(os.path.join(entry.target, attr)) for attr in attributes)

    logger.debug("Class %s produced %d file specs", dev_class, len(specs))
    return specs


def is_physical_net_link(link: str) -> bool:
    """Reject network interfaces backed by a virtual device."""
    return VIRTUAL_NET_MARKER not in link


def is_primary_card(name: str) -> bool:
    """Accept ``cardN`` entries only, not ``renderD*`` nodes or connectors."""
    return name.startswith("card") and "-" not in name


def net_globs(root: str = "/") -> list[str]:
    """Return the FileSpecs for physical network interfaces."""
    return clone_content_by_class(
        "net",
        NET_DEVICE_ATTRIBUTES,
        link_filter=is_physical_net_link,
        root=root,
    )


def gpu_globs(root: str = "/") -> list[str]:
    """Return the FileSpecs for primary graphics cards."""
    return clone_content_by_class(
        "drm",
        GPU_DEVICE_ATTRIBUTES,
        name_filter=is_primary_card,
        root=root,
    )
