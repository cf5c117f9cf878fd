"""hwsnap configuration and settings.

This module provides the configuration model and I/O functions for the
root mountpoint override: where hardware discovery reads /proc and /sys
from, and whether warnings are shown.

Configuration is stored in ~/.config/hwsnap/config.toml and can be
overridden through environment variables:

- HWSNAP_ROOT_MOUNTPOINT: alternate root mountpoint (e.g. /host when the
  host filesystems are bind-mounted into a container).
- HWSNAP_CHROOT: deprecated alias of HWSNAP_ROOT_MOUNTPOINT.
- HWSNAP_DISABLE_WARNINGS: truthy value to silence warnings.
"""

import logging
import os
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Annotated

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from hwsnap.core.paths import (
    CANONICAL_ROOTS,
    DEFAULT_ROOT_MOUNTPOINT,
    HardwarePaths,
    get_config_path,
    get_hardware_paths,
)

logger = logging.getLogger(__name__)

ENV_ROOT_MOUNTPOINT = "HWSNAP_ROOT_MOUNTPOINT"
ENV_CHROOT = "HWSNAP_CHROOT"
ENV_DISABLE_WARNINGS = "HWSNAP_DISABLE_WARNINGS"

_TRUTHY = frozenset({"1", "true", "yes", "on"})


class HwsnapConfig(BaseModel):
    """Configuration for hardware path resolution.

    Attributes:
        root_mountpoint: Directory standing in for ``/``.
        path_overrides: Replacement roots for canonical subtrees, keyed by
            ``/etc``, ``/proc``, ``/run``, ``/sys`` or ``/var``.
        disable_warnings: Suppress warning output.
    """

    model_config = ConfigDict(extra="forbid")

    root_mountpoint: Annotated[
        str,
        Field(min_length=1, description="Root mountpoint for hardware paths"),
    ] = DEFAULT_ROOT_MOUNTPOINT
    path_overrides: Annotated[
        dict[str, str],
        Field(default_factory=dict, description="Per-subtree root overrides"),
    ]
    disable_warnings: Annotated[
        bool,
        Field(description="Suppress warnings"),
    ] = False

    @field_validator("path_overrides")
    @classmethod
    def validate_override_keys(cls, v: dict[str, str]) -> dict[str, str]:
        """Only canonical subtree roots can be overridden."""
        unknown = sorted(set(v) - set(CANONICAL_ROOTS))
        if unknown:
            msg = f"unknown path override(s) {unknown}, expected one of {list(CANONICAL_ROOTS)}"
            raise ValueError(msg)
        return v


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigNotFoundError(ConfigError):
    """Raised when the config file is not found."""


class ConfigParseError(ConfigError):
    """Raised when the config file cannot be parsed."""


def load_config(path: Path | None = None) -> HwsnapConfig:
    """Load configuration from a TOML file.

    Args:
        path: Path to the config file. If None, uses the default path.

    Returns:
        Validated HwsnapConfig object.

    Raises:
        ConfigNotFoundError: If the config file doesn't exist.
        ConfigParseError: If the TOML syntax is invalid.
        ConfigError: If the content doesn't match the schema.
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        raise ConfigNotFoundError(f"Config not found: {config_path}")

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(f"Invalid TOML syntax: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read config: {e}") from e

    try:
        return HwsnapConfig.model_validate(data)
    except (ValueError, ValidationError) as e:
        raise ConfigError(f"Invalid config content: {e}") from e


def save_config(config: HwsnapConfig, path: Path | None = None) -> Path:
    """Save configuration to a TOML file.

    The file is written atomically by first writing to a temporary file
    and then using os.replace() for atomic rename.

    Args:
        config: The HwsnapConfig object to save.
        path: Path to save the config. If None, uses the default path.

    Returns:
        Path where the config was saved.

    Raises:
        ConfigError: If the file cannot be written.
    """
    from tempfile import NamedTemporaryFile

    config_path = path or get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True)

    data = _config_to_dict(config)

    tmp_path: Path | None = None
    try:
        with NamedTemporaryFile(
            mode="wb",
            dir=config_path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            tomli_w.dump(data, f)
        os.replace(str(tmp_path), str(config_path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise ConfigError(f"Failed to write config: {e}") from e

    return config_path


def _config_to_dict(config: HwsnapConfig) -> dict[str, object]:
    """Convert HwsnapConfig to a dictionary for TOML serialization.

    Empty override tables and default flags are left out.
    """
    result: dict[str, object] = {"root_mountpoint": config.root_mountpoint}

    if config.path_overrides:
        result["path_overrides"] = dict(config.path_overrides)

    if config.disable_warnings:
        result["disable_warnings"] = True

    return result


def _is_truthy(value: str) -> bool:
    return value.strip().lower() in _TRUTHY


def apply_env_overrides(
    config: HwsnapConfig,
    environ: Mapping[str, str] | None = None,
) -> HwsnapConfig:
    """Return a copy of ``config`` with environment overrides applied.

    HWSNAP_ROOT_MOUNTPOINT wins over the deprecated HWSNAP_CHROOT.
    """
    env = os.environ if environ is None else environ
    updates: dict[str, object] = {}

    root = env.get(ENV_ROOT_MOUNTPOINT)
    if not root and env.get(ENV_CHROOT):
        logger.warning(
            "Deprecated %s environment variable, use %s instead",
            ENV_CHROOT,
            ENV_ROOT_MOUNTPOINT,
        )
        root = env[ENV_CHROOT]
    if root:
        updates["root_mountpoint"] = root

    disable = env.get(ENV_DISABLE_WARNINGS)
    if disable is not None:
        updates["disable_warnings"] = _is_truthy(disable)

    return config.model_copy(update=updates) if updates else config


def resolve_config(
    path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> HwsnapConfig:
    """Load the effective configuration.

    Starts from the config file if present (defaults otherwise) and
    applies environment overrides on top.

    Raises:
        ConfigError: If an existing config file is invalid.
    """
    try:
        config = load_config(path)
    except ConfigNotFoundError:
        config = get_default_config()
    return apply_env_overrides(config, environ)


def resolve_paths(config: HwsnapConfig) -> HardwarePaths:
    """Resolve hardware paths for a configuration."""
    return get_hardware_paths(config.root_mountpoint, config.path_overrides)


def get_default_config() -> HwsnapConfig:
    """Create a default HwsnapConfig reading the live system."""
    return HwsnapConfig()
