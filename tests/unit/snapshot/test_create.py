"""Unit tests for snapshot capture."""

import hashlib
import os
import stat
import tarfile
from pathlib import Path
from unittest.mock import patch

import pytest

from hwsnap.snapshot.create import (
    Snapshotter,
    check_output_path,
    create_snapshot,
    default_snapshot_name,
    temporary_build_dir,
)
from hwsnap.snapshot.errors import OutputExistsError, PathError, PlatformError
from hwsnap.snapshot.expand import expand_snapshot, list_snapshot
from hwsnap.snapshot.models import EntryType

GPU = "sys/devices/pci0000:00/0000:00:1c.0/0000:01:00.0"


def _tree_contents(top: Path) -> dict[str, tuple[str, bytes | str | None]]:
    """Map each path below top to (kind, file content or link target)."""
    contents: dict[str, tuple[str, bytes | str | None]] = {}
    for dirpath, dirnames, filenames in os.walk(top):
        for name in dirnames + filenames:
            path = Path(dirpath) / name
            rel = str(path.relative_to(top))
            if path.is_symlink():
                contents[rel] = ("symlink", os.readlink(path))
            elif path.is_dir():
                contents[rel] = ("directory", None)
            else:
                contents[rel] = ("file", path.read_bytes())
    return contents


class TestPack:
    """Tests for Snapshotter.pack."""

    def test_three_entry_staging_tree(self, tmp_path: Path, staging_tree: Path) -> None:
        """A file, an empty directory and a symlink pack to three entries."""
        out = tmp_path / "snap.tar.gz"

        entries = Snapshotter(staging_tree, out).pack()

        assert entries == 3
        listed = list_snapshot(out)
        assert sorted((e.name, e.entry_type) for e in listed) == [
            ("proc/cpuinfo", EntryType.FILE),
            ("sys/block", EntryType.DIRECTORY),
            ("sys/class/net/eth0", EntryType.SYMLINK),
        ]

    def test_three_entry_staging_tree_expands(self, tmp_path: Path, staging_tree: Path) -> None:
        out = tmp_path / "snap.tar.gz"
        dest = tmp_path / "dest"
        Snapshotter(staging_tree, out).pack()

        expand_snapshot(out, dest)

        assert (dest / "proc" / "cpuinfo").read_bytes() == b"hello\n"
        assert (dest / "sys" / "block").is_dir()
        assert list((dest / "sys" / "block").iterdir()) == []
        eth0 = dest / "sys" / "class" / "net" / "eth0"
        assert eth0.is_symlink()
        assert os.readlink(eth0) == "../../devices/virtual/net/eth0"

    def test_owner_is_normalized(self, tmp_path: Path, staging_tree: Path) -> None:
        out = tmp_path / "snap.tar.gz"

        Snapshotter(staging_tree, out).pack()

        with tarfile.open(out, "r:gz") as tar:
            members = tar.getmembers()
        assert all(m.uid == 0 and m.gid == 0 for m in members)
        assert all(m.uname == "" and m.gname == "" for m in members)

    def test_archive_is_world_readable(self, tmp_path: Path, staging_tree: Path) -> None:
        out = tmp_path / "snap.tar.gz"

        Snapshotter(staging_tree, out).pack()

        assert stat.S_IMODE(out.stat().st_mode) == 0o644

    def test_unwritable_output_directory(self, tmp_path: Path, staging_tree: Path) -> None:
        out = tmp_path / "missing" / "snap.tar.gz"

        with pytest.raises(PathError, match="cannot write archive"):
            Snapshotter(staging_tree, out).pack()

        assert not out.parent.exists()


class TestCreateSnapshot:
    """Tests for a full capture against a fake root."""

    @pytest.fixture
    def captured(self, tmp_path: Path, fake_root: Path) -> tuple[Path, Path]:
        """Capture fake_root and expand it; returns (build, dest)."""
        build = tmp_path / "build"
        out = tmp_path / "snap.tar.gz"
        dest = tmp_path / "dest"
        create_snapshot(build, out, source_root=str(fake_root))
        expand_snapshot(out, dest)
        return build, dest

    def test_result_counts(self, tmp_path: Path, fake_root: Path) -> None:
        out = tmp_path / "snap.tar.gz"

        result = create_snapshot(tmp_path / "build", out, source_root=str(fake_root))

        assert result.out_path == out
        assert result.files > 0
        assert result.symlinks > 0
        assert result.entries > 0
        assert result.skipped == []

    def test_round_trip_is_exact(self, captured: tuple[Path, Path]) -> None:
        """Every staged file and link is reproduced byte for byte."""
        build, dest = captured

        staged = _tree_contents(build)
        expanded = _tree_contents(dest)

        assert expanded == staged

    def test_static_files(self, captured: tuple[Path, Path], fake_root: Path) -> None:
        _, dest = captured

        cpuinfo = (fake_root / "proc" / "cpuinfo").read_text()
        assert (dest / "proc" / "cpuinfo").read_text() == cpuinfo
        assert (dest / "proc" / "self" / "mounts").exists()
        cpu0 = dest / "sys" / "devices" / "system" / "cpu" / "cpu0"
        assert (cpu0 / "topology" / "core_id").exists()
        assert (cpu0 / "cache" / "index0" / "level").exists()
        assert not (dest / "proc" / "version").exists()
        node_cpu = dest / "sys" / "devices" / "system" / "node" / "node0" / "cpu0"
        assert os.readlink(node_cpu) == "../../cpu/cpu0"

    def test_pci_tree(self, captured: tuple[Path, Path]) -> None:
        _, dest = captured

        assert os.readlink(dest / "sys" / "bus" / "pci" / "devices" / "0000:01:00.0") == (
            "../../../devices/pci0000:00/0000:00:1c.0/0000:01:00.0"
        )
        assert (dest / GPU / "vendor").read_text() == "0x10de\n"
        assert not (dest / GPU / "power").exists()

    def test_driver_names_only(self, captured: tuple[Path, Path]) -> None:
        _, dest = captured
        drivers = dest / "sys" / "bus" / "pci" / "drivers"

        assert sorted(p.name for p in drivers.iterdir()) == ["e1000e", "nouveau"]
        assert list((drivers / "e1000e").iterdir()) == []

    def test_network_and_gpu_classes(self, captured: tuple[Path, Path]) -> None:
        _, dest = captured
        net = dest / "sys" / "class" / "net"
        drm = dest / "sys" / "class" / "drm"

        assert sorted(p.name for p in net.iterdir()) == ["eth0"]
        eth0 = dest / "sys" / "devices" / "pci0000:00" / "0000:00:00.0" / "net" / "eth0"
        assert (eth0 / "addr_assign_type").exists()
        assert not (eth0 / "address").exists()
        assert sorted(p.name for p in drm.iterdir()) == ["card0"]
        assert (dest / GPU / "drm" / "card0" / "device").is_symlink()

    def test_block_devices(self, captured: tuple[Path, Path]) -> None:
        _, dest = captured

        assert sorted(p.name for p in (dest / "sys" / "block").iterdir()) == ["sda"]

    def test_empty_block_directory_always_created(self, tmp_path: Path) -> None:
        source = tmp_path / "root"
        (source / "proc").mkdir(parents=True)
        (source / "proc" / "cpuinfo").write_text("processor\t: 0\n")
        out = tmp_path / "snap.tar.gz"

        create_snapshot(tmp_path / "build", out, source_root=str(source))

        names = {e.name: e.entry_type for e in list_snapshot(out)}
        assert names == {"proc/cpuinfo": EntryType.FILE, "sys/block": EntryType.DIRECTORY}

    def test_existing_output_refused_before_work(self, tmp_path: Path, fake_root: Path) -> None:
        out = tmp_path / "snap.tar.gz"
        out.write_bytes(b"previous")
        build = tmp_path / "build"

        with pytest.raises(OutputExistsError, match="already exists and is of size >0"):
            create_snapshot(build, out, source_root=str(fake_root))

        assert out.read_bytes() == b"previous"
        assert not build.exists()

    def test_empty_output_is_replaced(self, tmp_path: Path, fake_root: Path) -> None:
        out = tmp_path / "snap.tar.gz"
        out.touch()

        create_snapshot(tmp_path / "build", out, source_root=str(fake_root))

        assert out.stat().st_size > 0

    def test_not_linux(self, tmp_path: Path, fake_root: Path) -> None:
        build = tmp_path / "build"
        out = tmp_path / "snap.tar.gz"

        with (
            patch("hwsnap.snapshot.create.sys.platform", "darwin"),
            pytest.raises(PlatformError, match="only supported on Linux"),
        ):
            create_snapshot(build, out, source_root=str(fake_root))

        assert not out.exists()
        assert not build.exists()


class TestFileSpecs:
    """Tests for Snapshotter.file_specs."""

    def test_combines_all_sources(self, tmp_path: Path, fake_root: Path) -> None:
        specs = Snapshotter(tmp_path / "build", tmp_path / "out", str(fake_root)).file_specs()

        assert specs[0].endswith("/proc/cpuinfo")
        assert any(s.endswith("/sys/class/net/eth0") for s in specs)
        assert any(s.endswith("/sys/bus/pci/drivers/*") for s in specs)
        assert specs[-1].endswith("/drm/card0/device")


class TestCheckOutputPath:
    """Tests for check_output_path function."""

    def test_missing_is_fine(self, tmp_path: Path) -> None:
        check_output_path(tmp_path / "new.tar.gz")

    def test_directory_refused(self, tmp_path: Path) -> None:
        with pytest.raises(OutputExistsError, match="is a directory"):
            check_output_path(tmp_path)


class TestDefaultSnapshotName:
    """Tests for default_snapshot_name function."""

    def test_hashes_hostname(self) -> None:
        with (
            patch("hwsnap.snapshot.create.socket.gethostname", return_value="build-host"),
            patch("hwsnap.snapshot.create.platform.system", return_value="Linux"),
            patch("hwsnap.snapshot.create.platform.machine", return_value="x86_64"),
        ):
            name = default_snapshot_name()

        digest = hashlib.md5(b"build-host").hexdigest()
        assert name == f"linux-x86_64-{digest}.tar.gz"
        assert "build-host" not in name

    def test_unknown_hostname(self) -> None:
        with patch("hwsnap.snapshot.create.socket.gethostname", side_effect=OSError):
            assert default_snapshot_name() == "unknown"


class TestTemporaryBuildDir:
    """Tests for temporary_build_dir context manager."""

    def test_removed_after_use(self) -> None:
        with temporary_build_dir() as build:
            assert build.is_dir()
            (build / "proc").mkdir()

        assert not build.exists()
