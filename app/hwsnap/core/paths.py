"""Path management for hwsnap.

Two kinds of paths live here:

- The XDG-compliant configuration directory.
- Hardware paths: the pseudo-files hardware discovery reads, resolved
  against a root mountpoint and per-subtree overrides. Pointing the root
  mountpoint at an expanded snapshot makes discovery read the snapshot
  instead of the live system.

XDG default: ~/.config/hwsnap/
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from pathlib import Path

# Application identifier for directory naming
APP_NAME = "hwsnap"

DEFAULT_ROOT_MOUNTPOINT = "/"

# Canonical subtree roots that may be overridden individually
CANONICAL_ROOTS: tuple[str, ...] = ("/etc", "/proc", "/run", "/sys", "/var")


def _get_xdg_dir(env_var: str, default_subdir: str) -> Path:
    """Get XDG directory respecting environment variable override.

    Args:
        env_var: XDG environment variable name (e.g., "XDG_CONFIG_HOME").
        default_subdir: Default subdirectory under home (e.g., ".config").

    Returns:
        Path to the application-specific directory.
    """
    base = os.environ.get(env_var)
    if base:
        return Path(base) / APP_NAME
    return Path.home() / default_subdir / APP_NAME


def get_config_dir() -> Path:
    """Get the configuration directory path.

    Returns:
        Path to ~/.config/hwsnap/ (or XDG_CONFIG_HOME/hwsnap/).
    """
    return _get_xdg_dir("XDG_CONFIG_HOME", ".config")


def get_config_path() -> Path:
    """Get the default configuration file path.

    Returns:
        Path to ~/.config/hwsnap/config.toml.
    """
    return get_config_dir() / "config.toml"


# =============================================================================
# Hardware paths
# =============================================================================


@dataclass(frozen=True, slots=True)
class PathRoots:
    """Roots of the filesystem subtrees hardware discovery reads.

    Attributes:
        etc: Root standing in for /etc.
        proc: Root standing in for /proc.
        run: Root standing in for /run.
        sys: Root standing in for /sys.
        var: Root standing in for /var.
    """

    etc: str = "/etc"
    proc: str = "/proc"
    run: str = "/run"
    sys: str = "/sys"
    var: str = "/var"

    @classmethod
    def default(cls) -> "PathRoots":
        """Return the canonical roots."""
        return cls()

    def with_overrides(self, overrides: Mapping[str, str] | None) -> "PathRoots":
        """Return a copy with the given canonical roots replaced.

        Keys are canonical roots such as ``/proc``; unknown keys are ignored.
        """
        if not overrides:
            return self
        changes = {
            key.lstrip("/"): value for key, value in overrides.items() if key in CANONICAL_ROOTS
        }
        return replace(self, **changes)


def _join(root: str, *parts: str) -> str:
    # os.path.join would discard root for absolute parts
    return os.path.join(root, *(p.lstrip("/") for p in parts))


@dataclass(frozen=True, slots=True)
class HardwarePaths:
    """Concrete locations of the pseudo-files hardware discovery reads."""

    var_log: str
    proc_meminfo: str
    proc_cpuinfo: str
    proc_mounts: str
    sys_kernel_mm_hugepages: str
    sys_block: str
    sys_devices_system_node: str
    sys_devices_system_memory: str
    sys_devices_system_cpu: str
    sys_bus_pci_devices: str
    sys_class_drm: str
    sys_class_dmi: str
    sys_class_net: str
    run_udev_data: str

    def node_meminfo(self, node_id: int) -> str:
        return os.path.join(self.sys_devices_system_node, f"node{node_id}", "meminfo")

    def node_cpu(self, node_id: int, cpu_id: int) -> str:
        return os.path.join(self.sys_devices_system_node, f"node{node_id}", f"cpu{cpu_id}")

    def node_cpu_cache(self, node_id: int, cpu_id: int) -> str:
        return os.path.join(self.node_cpu(node_id, cpu_id), "cache")

    def node_cpu_cache_index(self, node_id: int, cpu_id: int, index: int) -> str:
        return os.path.join(self.node_cpu_cache(node_id, cpu_id), f"index{index}")

    def as_dict(self) -> dict[str, str]:
        """Return the fixed paths keyed by field name."""
        return {f.name: getattr(self, f.name) for f in fields(self)}


def get_hardware_paths(
    root_mountpoint: str = DEFAULT_ROOT_MOUNTPOINT,
    overrides: Mapping[str, str] | None = None,
) -> HardwarePaths:
    """Resolve hardware paths against a root mountpoint.

    Every path is ``root_mountpoint`` joined with its (possibly overridden)
    subtree root, so ``get_hardware_paths("/host").proc_cpuinfo`` is
    ``/host/proc/cpuinfo``.

    Args:
        root_mountpoint: Directory standing in for ``/``; the live root by
            default, or an expanded snapshot.
        overrides: Optional replacements for canonical subtree roots,
            keyed by ``/etc``, ``/proc``, ``/run``, ``/sys`` or ``/var``.

    Returns:
        HardwarePaths for the given root.
    """
    root = root_mountpoint or DEFAULT_ROOT_MOUNTPOINT
    roots = PathRoots.default().with_overrides(overrides)
    sys_root = _join(root, roots.sys)
    return HardwarePaths(
        var_log=_join(root, roots.var, "log"),
        proc_meminfo=_join(root, roots.proc, "meminfo"),
        proc_cpuinfo=_join(root, roots.proc, "cpuinfo"),
        proc_mounts=_join(root, roots.proc, "self", "mounts"),
        sys_kernel_mm_hugepages=_join(sys_root, "kernel", "mm", "hugepages"),
        sys_block=_join(sys_root, "block"),
        sys_devices_system_node=_join(sys_root, "devices", "system", "node"),
        sys_devices_system_memory=_join(sys_root, "devices", "system", "memory"),
        sys_devices_system_cpu=_join(sys_root, "devices", "system", "cpu"),
        sys_bus_pci_devices=_join(sys_root, "bus", "pci", "devices"),
        sys_class_drm=_join(sys_root, "class", "drm"),
        sys_class_dmi=_join(sys_root, "class", "dmi"),
        sys_class_net=_join(sys_root, "class", "net"),
        run_udev_data=_join(root, roots.run, "udev", "data"),
    )
