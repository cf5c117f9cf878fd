"""Snapshot expansion.

Restores a snapshot archive into an empty directory, which can then be
used as the root mountpoint for hardware discovery.
"""

import gzip
import logging
import os
import shutil
import tarfile
import zlib
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from hwsnap.snapshot.errors import ArchiveFormatError, DestinationNotEmptyError, PathError
from hwsnap.snapshot.models import ArchiveEntry, EntryType, ExpandResult

logger = logging.getLogger(__name__)

_DECODE_ERRORS = (tarfile.TarError, EOFError, zlib.error, gzip.BadGzipFile)


def expand_snapshot(
    archive_path: str | os.PathLike[str],
    dest_path: str | os.PathLike[str],
) -> ExpandResult:
    """Expand a snapshot archive into a destination directory.

    The destination is created if missing. An existing destination must
    be an empty directory; this is checked before the archive is opened.
    Members are processed strictly in archive order. On failure, whatever
    was already extracted stays in place.

    Args:
        archive_path: Path to the ``.tar.gz`` snapshot.
        dest_path: Directory to expand into.

    Returns:
        Summary of the expansion.

    Raises:
        DestinationNotEmptyError: If the destination holds any entry.
        ArchiveFormatError: If the archive is corrupt, truncated or holds
            members escaping the destination.
        PathError: On filesystem failures while writing.
    """
    dest = Path(dest_path)
    prepare_destination(dest)

    result = ExpandResult(dest_path=dest)
    with _open_archive(archive_path) as tar:
        try:
            for member in tar:
                _extract_member(tar, member, dest, result)
        except _DECODE_ERRORS as e:
            raise ArchiveFormatError(f"corrupt snapshot {archive_path}: {e}") from e

    logger.info(
        "Expanded %s into %s: %d files, %d symlinks, %d directories",
        archive_path,
        dest,
        result.files,
        result.symlinks,
        result.directories,
    )
    return result


def list_snapshot(archive_path: str | os.PathLike[str]) -> list[ArchiveEntry]:
    """List the entries of a snapshot archive without extracting it.

    Raises:
        ArchiveFormatError: If the archive is corrupt or truncated.
        PathError: If the archive cannot be opened.
    """
    entries: list[ArchiveEntry] = []
    with _open_archive(archive_path) as tar:
        try:
            for member in tar:
                entries.append(
                    ArchiveEntry(
                        name=member.name,
                        entry_type=_entry_type(member),
                        mode=member.mode,
                        size=member.size if member.isreg() else 0,
                        link_target=member.linkname if member.issym() else None,
                    )
                )
        except _DECODE_ERRORS as e:
            raise ArchiveFormatError(f"corrupt snapshot {archive_path}: {e}") from e
    return entries


def prepare_destination(dest: Path) -> None:
    """Create ``dest`` or make sure it is an empty directory.

    Raises:
        DestinationNotEmptyError: If ``dest`` exists and is not an empty
            directory.
        PathError: If ``dest`` cannot be inspected or created.
    """
    if not dest.exists() and not dest.is_symlink():
        try:
            dest.mkdir(parents=True)
        except OSError as e:
            raise PathError(str(dest), f"cannot create directory: {e}") from e
        return

    if not dest.is_dir():
        raise DestinationNotEmptyError(f"target {dest} exists and is not a directory")

    try:
        with os.scandir(dest) as it:
            not_empty = any(True for _ in it)
    except OSError as e:
        raise PathError(str(dest), f"cannot list directory: {e}") from e

    if not_empty:
        raise DestinationNotEmptyError(f"target directory {dest} is not empty")


@contextmanager
def _open_archive(archive_path: str | os.PathLike[str]) -> Iterator[tarfile.TarFile]:
    # Stream mode: members are read once, in order
    try:
        tar = tarfile.open(archive_path, mode="r|gz")
    except FileNotFoundError as e:
        raise PathError(str(archive_path), "snapshot not found") from e
    except _DECODE_ERRORS as e:
        raise ArchiveFormatError(f"corrupt snapshot {archive_path}: {e}") from e
    except OSError as e:
        raise PathError(str(archive_path), f"cannot open snapshot: {e}") from e

    with tar:
        yield tar


def _extract_member(
    tar: tarfile.TarFile,
    member: tarfile.TarInfo,
    dest: Path,
    result: ExpandResult,
) -> None:
    target = _member_target(dest, member.name)
    mode = member.mode & 0o7777

    try:
        if member.isdir():
            os.makedirs(target, mode=mode, exist_ok=True)
            result.directories += 1
        elif member.isreg():
            if os.path.islink(target):
                raise ArchiveFormatError(f"entry {member.name!r} would overwrite a symlink")
            os.makedirs(os.path.dirname(target), exist_ok=True)
            src = tar.extractfile(member)
            if src is None:
                raise ArchiveFormatError(f"no content for file entry {member.name}")
            fd = os.open(target, os.O_WRONLY | os.O_CREAT | os.O_TRUNC | os.O_NOFOLLOW, mode)
            with src, os.fdopen(fd, "wb") as dst:
                # Existing files keep their old mode through O_CREAT
                os.fchmod(dst.fileno(), mode)
                shutil.copyfileobj(src, dst)
            result.files += 1
        elif member.issym():
            os.makedirs(os.path.dirname(target), exist_ok=True)
            os.symlink(member.linkname, target)
            result.symlinks += 1
        else:
            logger.debug("Ignoring unsupported entry %s (type %r)", member.name, member.type)
            result.ignored.append(member.name)
    except _DECODE_ERRORS:
        raise
    except OSError as e:
        raise PathError(target, f"cannot extract: {e}") from e


def _member_target(dest: Path, name: str) -> str:
    """Map a member name to a path below ``dest``, refusing escapes.

    Both the member name and its parent directory as it currently exists
    on disk must stay inside ``dest``, so links extracted earlier cannot
    redirect later members.
    """
    root = os.path.normpath(dest)
    target = os.path.normpath(os.path.join(root, name))
    if os.path.isabs(name) or not (target == root or target.startswith(root + os.sep)):
        raise ArchiveFormatError(f"entry {name!r} escapes the destination directory")
    if target == root:
        return target

    real_root = os.path.realpath(root)
    real_parent = os.path.realpath(os.path.dirname(target))
    if not (real_parent == real_root or real_parent.startswith(real_root + os.sep)):
        raise ArchiveFormatError(f"entry {name!r} escapes the destination through a symlink")
    return target


def _entry_type(member: tarfile.TarInfo) -> EntryType:
    if member.isdir():
        return EntryType.DIRECTORY
    if member.isreg():
        return EntryType.FILE
    if member.issym():
        return EntryType.SYMLINK
    return EntryType.OTHER
