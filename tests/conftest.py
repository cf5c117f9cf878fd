"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules. Most of them
build small fake /proc and /sys trees below ``tmp_path`` that capture can
run against in place of the live root.
"""

import os
from pathlib import Path

import pytest

# PCI layout of the fake host:
#   0000:00:00.0  host bridge, owns eth0 and sda
#   0000:00:1c.0  PCI bridge to bus 01
#   0000:01:00.0  GPU behind the bridge, owns card0
PCI_ROOT = "sys/devices/pci0000:00"
HOST_BRIDGE = f"{PCI_ROOT}/0000:00:00.0"
PCI_BRIDGE = f"{PCI_ROOT}/0000:00:1c.0"
GPU = f"{PCI_BRIDGE}/0000:01:00.0"


def write(root: Path, rel: str, content: str = "") -> Path:
    """Create a file below root, with parent directories."""
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    return path


def link(root: Path, rel: str, target: str) -> Path:
    """Create a symlink below root, with parent directories."""
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    os.symlink(target, path)
    return path


def pci_device(root: Path, rel: str, vendor: str, device: str, pci_class: str) -> None:
    """Create a PCI device directory with a subset of its attributes."""
    write(root, f"{rel}/vendor", f"{vendor}\n")
    write(root, f"{rel}/device", f"{device}\n")
    write(root, f"{rel}/class", f"{pci_class}\n")
    write(root, f"{rel}/numa_node", "-1\n")
    write(root, f"{rel}/power/control", "auto\n")


@pytest.fixture(autouse=True)
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Keep the user's config file and HWSNAP_* variables out of every test."""
    config_home = tmp_path / "xdg-config"
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_home))
    for name in ("HWSNAP_ROOT_MOUNTPOINT", "HWSNAP_CHROOT", "HWSNAP_DISABLE_WARNINGS"):
        monkeypatch.delenv(name, raising=False)
    return config_home


@pytest.fixture
def fake_root(tmp_path: Path) -> Path:
    """A fake root filesystem with CPU, memory, PCI, net, GPU and block data."""
    root = tmp_path / "root"

    write(root, "proc/cpuinfo", "processor\t: 0\nvendor_id\t: GenuineIntel\n")
    write(root, "proc/meminfo", "MemTotal:       16318160 kB\n")
    write(root, "proc/self/mounts", "proc /proc proc rw 0 0\n")
    write(root, "proc/version", "Linux version 6.1.0\n")

    write(root, "sys/devices/system/cpu/cpu0/topology/core_id", "0\n")
    write(root, "sys/devices/system/cpu/cpu0/cache/index0/level", "1\n")
    write(root, "sys/devices/system/memory/block_size_bytes", "8000000\n")
    write(root, "sys/devices/system/memory/memory0/online", "1\n")
    write(root, "sys/devices/system/node/online", "0\n")
    write(root, "sys/devices/system/node/node0/meminfo", "Node 0 MemTotal: 16318160 kB\n")
    link(root, "sys/devices/system/node/node0/cpu0", "../../cpu/cpu0")

    pci_device(root, HOST_BRIDGE, "0x8086", "0x3e30", "0x060000")
    pci_device(root, PCI_BRIDGE, "0x8086", "0xa33c", "0x060400")
    pci_device(root, GPU, "0x10de", "0x1f82", "0x030000")
    link(root, f"{HOST_BRIDGE}/driver", "../../../bus/pci/drivers/e1000e")
    for dev in ("0000:00:00.0", "0000:00:1c.0"):
        link(root, f"sys/bus/pci/devices/{dev}", f"../../../devices/pci0000:00/{dev}")
    link(
        root,
        "sys/bus/pci/devices/0000:01:00.0",
        "../../../devices/pci0000:00/0000:00:1c.0/0000:01:00.0",
    )
    write(root, "sys/bus/pci/drivers/e1000e/bind")
    write(root, "sys/bus/pci/drivers/nouveau/new_id")

    write(root, f"{HOST_BRIDGE}/net/eth0/addr_assign_type", "0\n")
    write(root, f"{HOST_BRIDGE}/net/eth0/address", "52:54:00:12:34:56\n")
    link(root, "sys/class/net/eth0", "../../devices/pci0000:00/0000:00:00.0/net/eth0")
    write(root, "sys/devices/virtual/net/lo/addr_assign_type", "0\n")
    link(root, "sys/class/net/lo", "../../devices/virtual/net/lo")

    link(root, f"{GPU}/drm/card0/device", "../../../0000:01:00.0")
    card = "../../devices/pci0000:00/0000:00:1c.0/0000:01:00.0/drm"
    link(root, "sys/class/drm/card0", f"{card}/card0")
    link(root, "sys/class/drm/card0-HDMI-A-1", f"{card}/card0/card0-HDMI-A-1")
    link(root, "sys/class/drm/renderD128", f"{card}/renderD128")

    sda = f"{HOST_BRIDGE}/block/sda"
    write(root, f"{sda}/size", "1953525168\n")
    write(root, f"{sda}/ro", "0\n")
    write(root, f"{sda}/queue/rotational", "1\n")
    write(root, f"{sda}/queue/scheduler", "[mq-deadline] none\n")
    write(root, f"{sda}/sda1/size", "1048576\n")
    write(root, f"{sda}/sda1/start", "2048\n")
    write(root, f"{sda}/sda1/power/control", "auto\n")
    write(root, f"{sda}/trace/enable", "0\n")
    link(root, f"{sda}/subsystem", "../../../../../class/block")
    link(root, "sys/block/sda", "../devices/pci0000:00/0000:00:00.0/block/sda")
    write(root, "sys/devices/virtual/block/loop0/size", "0\n")
    link(root, "sys/block/loop0", "../devices/virtual/block/loop0")

    return root


@pytest.fixture
def staging_tree(tmp_path: Path) -> Path:
    """A staging tree with one file, one empty directory and one symlink."""
    build = tmp_path / "build"
    write(build, "proc/cpuinfo", "hello\n")
    (build / "sys" / "block").mkdir(parents=True)
    link(build, "sys/class/net/eth0", "../../devices/virtual/net/eth0")
    return build
