"""Snapshot capture.

Builds a staging mirror of the hardware-describing pseudo-files in a
build directory and packs it into a gzip-compressed tar archive.
"""

import glob
import hashlib
import logging
import os
import platform
import socket
import stat
import sys
import tarfile
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from hwsnap.snapshot.block import clone_block_devices
from hwsnap.snapshot.devclass import gpu_globs, net_globs
from hwsnap.snapshot.errors import OutputExistsError, PathError, PlatformError
from hwsnap.snapshot.models import SnapshotResult
from hwsnap.snapshot.pci import pci_globs
from hwsnap.snapshot.specs import CREATE_PATHS, source_path, static_globs
from hwsnap.snapshot.staging import StagingTree

logger = logging.getLogger(__name__)


class Snapshotter:
    """Captures pseudo-files into a snapshot archive.

    Attributes:
        build_path: Staging directory, owned by this capture.
        out_path: Archive to write. Must not exist or be empty.
        source_root: Directory captured as ``/`` (the live root by default).
    """

    def __init__(
        self,
        build_path: str | os.PathLike[str],
        out_path: str | os.PathLike[str],
        source_root: str = "/",
    ) -> None:
        self.build_path = Path(build_path)
        self.out_path = Path(out_path)
        self.source_root = source_root
        self._tree = StagingTree(self.build_path, source_root)

    def file_specs(self) -> list[str]:
        """Compute every glob pattern to capture.

        Device-dependent patterns are discovered against the source root
        each time this is called.
        """
        root = self.source_root
        return [
            *static_globs(root),
            *net_globs(root),
            *pci_globs(root),
            *gpu_globs(root),
        ]

    def run(self) -> SnapshotResult:
        """Stage all pseudo-files and pack them into the output archive.

        Raises:
            PlatformError: If not running on Linux.
            OutputExistsError: If the output file already holds data.
            PathError: On any unrecoverable filesystem failure.
        """
        check_platform()
        check_output_path(self.out_path)

        for path in CREATE_PATHS:
            self._tree.add_dir(source_path(path, self.source_root))

        devices = clone_block_devices(self._tree, self.source_root)
        logger.info("Cloned %d block devices", devices)

        specs = self.file_specs()
        logger.info("Resolving %d file specs", len(specs))
        for spec in specs:
            self.copy_glob(spec)

        entries = self.pack()
        logger.info("Wrote %d entries to %s", entries, self.out_path)

        return SnapshotResult(
            out_path=self.out_path,
            files=self._tree.files,
            symlinks=self._tree.symlinks,
            directories=self._tree.directories,
            entries=entries,
            skipped=list(self._tree.skipped),
        )

    def copy_glob(self, spec: str) -> None:
        """Copy every path matching ``spec`` into the staging tree."""
        for path in glob.glob(spec):
            self._tree.copy(path)

    def pack(self) -> int:
        """Write the staging tree as a tar.gz archive at the output path.

        Only leaves are stored: files, symlinks and empty directories.
        Parent directories are implied by member names and recreated on
        expansion. The archive is written to a temporary file next to the
        output and renamed into place once complete.

        Returns:
            Number of entries written.
        """
        entries = 0

        def _portable(info: tarfile.TarInfo) -> tarfile.TarInfo | None:
            nonlocal entries
            if not (info.isdir() or info.isreg() or info.issym()):
                logger.debug("Not archiving unsupported entry %s", info.name)
                return None
            # Host user and group names are not part of the hardware picture
            info.uid = info.gid = 0
            info.uname = info.gname = ""
            entries += 1
            return info

        build = str(self.build_path)
        out_dir = self.out_path.parent
        tmp_path: Path | None = None
        try:
            with tempfile.NamedTemporaryFile(
                dir=out_dir,
                prefix=f".{self.out_path.name}.",
                suffix=".tmp",
                delete=False,
            ) as f:
                tmp_path = Path(f.name)
                with tarfile.open(fileobj=f, mode="w:gz") as tar:
                    for path in _leaves(build):
                        arcname = os.path.relpath(path, build)
                        tar.add(path, arcname=arcname, recursive=False, filter=_portable)
            os.chmod(tmp_path, 0o644)
            os.replace(tmp_path, self.out_path)
        except (OSError, tarfile.TarError) as e:
            if tmp_path is not None and tmp_path.exists():
                tmp_path.unlink()
            raise PathError(str(self.out_path), f"cannot write archive: {e}") from e

        return entries


def create_snapshot(
    build_path: str | os.PathLike[str],
    out_path: str | os.PathLike[str],
    *,
    source_root: str = "/",
) -> SnapshotResult:
    """Capture a snapshot of ``source_root`` into ``out_path``.

    Args:
        build_path: Staging directory for this capture.
        out_path: Archive to write.
        source_root: Directory captured as ``/``.

    Returns:
        Summary of the capture.
    """
    return Snapshotter(build_path, out_path, source_root).run()


def check_platform() -> None:
    """Fail unless procfs and sysfs are available (Linux only)."""
    if not sys.platform.startswith("linux"):
        msg = f"snapshot capture is only supported on Linux, not {sys.platform}"
        raise PlatformError(msg)


def check_output_path(out_path: Path) -> None:
    """Refuse to overwrite an output file that already holds data."""
    try:
        st = os.stat(out_path)
    except FileNotFoundError:
        return
    except OSError as e:
        raise PathError(str(out_path), f"stat failed: {e}") from e

    if stat.S_ISDIR(st.st_mode):
        raise OutputExistsError(f"output path {out_path} is a directory")
    if st.st_size > 0:
        raise OutputExistsError(f"file {out_path} already exists and is of size >0")


def default_snapshot_name() -> str:
    """Return the default archive name ``<os>-<arch>-<hostname hash>.tar.gz``.

    The hostname is hashed so the file name does not reveal it.
    """
    try:
        hostname = socket.gethostname()
    except OSError:
        return "unknown"
    fingerprint = hashlib.md5(hostname.encode(), usedforsecurity=False).hexdigest()
    return f"{platform.system().lower()}-{platform.machine()}-{fingerprint}.tar.gz"


@contextmanager
def temporary_build_dir() -> Iterator[Path]:
    """Provide a staging directory that is removed after use."""
    with tempfile.TemporaryDirectory(prefix="hwsnap-snapshot-") as tmp:
        yield Path(tmp)


def _leaves(top: str) -> Iterator[str]:
    """Yield files, symlinks and empty directories below ``top`` in sorted order."""
    for dirpath, dirnames, filenames in os.walk(top):
        dirnames.sort()
        # Symlinks to directories are listed but never descended into
        links = [d for d in dirnames if os.path.islink(os.path.join(dirpath, d))]
        dirnames[:] = [d for d in dirnames if d not in links]
        for name in sorted(filenames + links):
            yield os.path.join(dirpath, name)
        if dirpath != top and not dirnames and not filenames and not links:
            yield dirpath
