"""Block device cloning.

Entries of ``/sys/block`` are symlinks into the device tree. Their backing
directories mix useful pseudo-files (size, read-only flag, partition
data) with self-referential links and trace subtrees, so they are copied
selectively rather than by glob.
"""

import logging
import os
import stat

from hwsnap.snapshot.errors import PathError
from hwsnap.snapshot.specs import SYS_BLOCK_DIR, source_path
from hwsnap.snapshot.staging import StagingTree

logger = logging.getLogger(__name__)

# Loop devices describe files, not hardware
_IGNORED_PREFIXES: tuple[str, ...] = ("loop",)


def clone_block_devices(tree: StagingTree, root: str = "/") -> int:
    """Mirror every non-loop block device into the staging tree.

    Args:
        tree: Staging tree to populate.
        root: Source root standing in for ``/``.

    Returns:
        Number of block devices cloned.

    Raises:
        PathError: If a device link or directory cannot be copied.
    """
    block_dir = source_path(SYS_BLOCK_DIR, root)
    try:
        names = sorted(os.listdir(block_dir))
    except FileNotFoundError:
        logger.debug("No block device directory at %s", block_dir)
        return 0
    except OSError as e:
        raise PathError(block_dir, f"cannot list directory: {e}") from e

    cloned = 0
    for name in names:
        if name.startswith(_IGNORED_PREFIXES):
            continue

        link_path = os.path.join(block_dir, name)
        try:
            link = os.readlink(link_path)
        except OSError as e:
            raise PathError(link_path, f"readlink failed: {e}") from e

        device_dir = os.path.normpath(os.path.join(block_dir, link))
        logger.debug("Block device %s is backed by %s", name, device_dir)

        tree.add_dir(device_dir)
        tree.copy_link(link_path, tree.dest_for(link_path))
        _clone_device_dir(tree, device_dir)
        cloned += 1

    return cloned


def _clone_device_dir(tree: StagingTree, device_dir: str) -> None:
    """Copy a block device directory: regular files, partitions, rotational flag."""
    dev_name = os.path.basename(device_dir)

    for name, mode in _list_entries(device_dir):
        path = os.path.join(device_dir, name)
        if stat.S_ISLNK(mode):
            # "subsystem", "bdi" and friends point back into the tree
            continue
        if stat.S_ISDIR(mode):
            # Partitions are subdirectories named after the device (sda1)
            if name.startswith(dev_name):
                _clone_partition_dir(tree, path)
        elif stat.S_ISREG(mode):
            tree.copy_pseudo_file(path, tree.dest_for(path))

    rotational = os.path.join(device_dir, "queue", "rotational")
    tree.add_dir(os.path.dirname(rotational))
    if os.path.exists(rotational):
        tree.copy_pseudo_file(rotational, tree.dest_for(rotational))


def _clone_partition_dir(tree: StagingTree, partition_dir: str) -> None:
    tree.add_dir(partition_dir)
    for name, mode in _list_entries(partition_dir):
        # Subdirectories only hold power and trace data
        if stat.S_ISREG(mode):
            path = os.path.join(partition_dir, name)
            tree.copy_pseudo_file(path, tree.dest_for(path))


def _list_entries(directory: str) -> list[tuple[str, int]]:
    try:
        with os.scandir(directory) as it:
            return sorted((entry.name, entry.stat(follow_symlinks=False).st_mode) for entry in it)
    except OSError as e:
        raise PathError(directory, f"cannot list directory: {e}") from e
