"""Staging tree construction.

Pseudo-files under /proc and /sys cannot be archived directly: their
reported size does not match what a read returns, so a tar writer would
store empty files. Instead each file is read fully into memory and
rewritten into a mirror tree below the build directory, preserving its
position relative to the source root.
"""

import logging
import os
import stat

from hwsnap.snapshot.errors import PathError

logger = logging.getLogger(__name__)


class StagingTree:
    """On-disk mirror of the captured pseudo-files.

    Directories are created implicitly as files beneath them are copied.
    Directories are only materialised on their own when their path
    contains ``drivers``: for driver registries the directory name is the
    information, not the files inside.

    Args:
        build_path: Root of the mirror.
        source_root: Directory mirrored at ``build_path`` (normally ``/``).
    """

    def __init__(self, build_path: str | os.PathLike[str], source_root: str = "/") -> None:
        self.build_path = os.path.normpath(os.fspath(build_path))
        self.source_root = os.path.normpath(source_root)
        self.files = 0
        self.symlinks = 0
        self.directories = 0
        self.skipped: list[str] = []

    def relative(self, source: str) -> str:
        """Return the position of ``source`` relative to the source root.

        Raises:
            PathError: If the path lies outside the source root.
        """
        rel = os.path.relpath(os.path.normpath(source), self.source_root)
        if rel == os.pardir or rel.startswith(os.pardir + os.sep):
            raise PathError(source, f"outside of source root {self.source_root}")
        return rel

    def dest_for(self, source: str) -> str:
        """Return the mirror location of a source path."""
        return os.path.join(self.build_path, self.relative(source))

    def add_dir(self, source: str) -> str:
        """Create the mirror directory of ``source``, which may stay empty.

        Returns:
            The created directory inside the staging tree.
        """
        dest = self.dest_for(source)
        _makedirs(dest)
        self.directories += 1
        return dest

    def copy(self, source: str) -> None:
        """Mirror a single path of any supported type.

        Raises:
            PathError: If the path cannot be inspected or copied.
        """
        rel = self.relative(source)
        dest = os.path.join(self.build_path, rel)
        _makedirs(os.path.dirname(dest))

        try:
            st = os.lstat(source)
        except OSError as e:
            raise PathError(source, f"stat failed: {e}") from e

        if stat.S_ISDIR(st.st_mode):
            if "drivers" in rel:
                _makedirs(dest)
                self.directories += 1
        elif stat.S_ISLNK(st.st_mode):
            self.copy_link(source, dest)
        else:
            self.copy_pseudo_file(source, dest)

    def copy_link(self, source: str, dest: str) -> None:
        """Recreate a symlink with its original, unresolved target.

        An already existing link at ``dest`` is left untouched.
        """
        try:
            target = os.readlink(source)
        except OSError as e:
            raise PathError(source, f"readlink failed: {e}") from e

        try:
            os.symlink(target, dest)
        except FileExistsError:
            return
        except OSError as e:
            raise PathError(dest, f"symlink failed: {e}") from e

        logger.debug("Linked %s -> %s", dest, target)
        self.symlinks += 1

    def copy_pseudo_file(self, source: str, dest: str) -> bool:
        """Copy the full content of a pseudo-file into the mirror.

        Returns:
            False if the content was not readable for lack of permission.

        Raises:
            PathError: On any other read or write failure.
        """
        try:
            with open(source, "rb") as f:
                data = f.read()
        except PermissionError:
            logger.warning("Permission denied reading %s - skipped", source)
            self.skipped.append(source)
            return False
        except OSError as e:
            raise PathError(source, f"read failed: {e}") from e

        try:
            with open(dest, "wb") as f:
                f.write(data)
        except OSError as e:
            raise PathError(dest, f"write failed: {e}") from e

        logger.debug("Copied %s (%d bytes)", source, len(data))
        self.files += 1
        return True


def _makedirs(path: str) -> None:
    try:
        os.makedirs(path, exist_ok=True)
    except OSError as e:
        raise PathError(path, f"cannot create directory: {e}") from e
