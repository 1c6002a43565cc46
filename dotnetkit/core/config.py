"""
Installer configuration for dotnetkit.

Configuration is resolved in layers, later layers winning:

1. Built-in defaults
2. YAML configuration file (``~/.dotnetkit/config.yaml`` or ``--config PATH``)
3. Environment variables (``DOTNETKIT_HOME``, ``DOTNETKIT_PLATFORM``)
4. Explicit overrides (command-line options)

The resulting :class:`InstallerConfig` is passed explicitly to every component
so that none of them reads ambient process state.

Example config.yaml:

    install_root: ~/sdks/dotnet
    platform: linux-x64
    releases_index_url: https://builds.dotnet.microsoft.com/dotnet/release-metadata/releases-index.json
    timeout: 60
    lock_timeout: 30
"""

import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from dotnetkit.core.exceptions import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_RELEASES_INDEX_URL = (
    "https://builds.dotnet.microsoft.com/dotnet/release-metadata/releases-index.json"
)
CONFIG_FILE_NAME = "config.yaml"
LEDGER_FILE_NAME = "installed.json"
ARCHIVE_FILE_NAME = "dotnet.tar.gz"
STAGING_DIR_NAME = "temp"


def get_global_dir() -> Path:
    """
    Get the platform-specific dotnetkit home directory.

    Returns:
        Path: ``%USERPROFILE%\\.dotnetkit`` on Windows, ``~/.dotnetkit`` elsewhere.
    """
    if os.name == "nt":
        user_profile = os.environ.get("USERPROFILE")
        if not user_profile:
            raise ConfigError(
                "USERPROFILE environment variable is not set. "
                "Cannot determine the dotnetkit home directory."
            )
        return Path(user_profile) / ".dotnetkit"
    return Path.home() / ".dotnetkit"


@dataclass
class InstallerConfig:
    """
    Resolved installer settings.

    Attributes:
        install_root: Root directory holding per-platform trees and the ledger
        platform: Runtime identifier of the SDK files to install (e.g. 'linux-x64')
        releases_index_url: URL of the release catalog index document
        timeout: Network timeout in seconds
        lock_timeout: Seconds to wait for the ledger lock
    """

    install_root: Path
    platform: str
    releases_index_url: str = DEFAULT_RELEASES_INDEX_URL
    timeout: int = 60
    lock_timeout: int = 30

    def __post_init__(self):
        self.install_root = Path(self.install_root).expanduser()
        if not self.platform:
            raise ConfigError("Platform identifier cannot be empty")
        if self.timeout <= 0:
            raise ConfigError(f"timeout must be positive, got {self.timeout}")
        if self.lock_timeout < 0:
            raise ConfigError(
                f"lock_timeout must not be negative, got {self.lock_timeout}"
            )

    @property
    def platform_dir(self) -> Path:
        """Shared installation tree for the configured platform."""
        return self.install_root / self.platform

    @property
    def ledger_path(self) -> Path:
        return self.install_root / LEDGER_FILE_NAME

    @property
    def staging_dir(self) -> Path:
        return self.install_root / STAGING_DIR_NAME

    @property
    def archive_path(self) -> Path:
        return self.install_root / ARCHIVE_FILE_NAME

    @property
    def lock_dir(self) -> Path:
        return self.install_root / "lock"


def load_yaml_config(config_file: Path, required: bool = False) -> Dict[str, Any]:
    """
    Load and parse a YAML configuration file.

    Args:
        config_file: Path to YAML configuration file
        required: If True, raise error if file doesn't exist

    Returns:
        Configuration dictionary (empty dict if file doesn't exist and not required)

    Raises:
        ConfigError: If the file is required but missing, or is not valid YAML
    """
    if not config_file.exists():
        if required:
            raise ConfigError(f"Configuration file not found: {config_file}")
        logger.debug(f"Config file not found (optional): {config_file}")
        return {}

    logger.debug(f"Loading configuration from {config_file}")

    try:
        with open(config_file, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_file}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration in {config_file} must be a mapping")

    known = {f.name for f in fields(InstallerConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ConfigError(
            f"Unknown configuration keys in {config_file}: {', '.join(unknown)}"
        )

    return data


def load_config(
    config_file: Optional[Path] = None,
    environ: Optional[Dict[str, str]] = None,
    **overrides,
) -> InstallerConfig:
    """
    Build an InstallerConfig from defaults, YAML file, environment and overrides.

    Args:
        config_file: Explicit YAML file (must exist). If None, the default
            ``config.yaml`` in the dotnetkit home is read when present.
        environ: Environment mapping (defaults to ``os.environ``)
        **overrides: Explicit values; ``None`` values are ignored

    Returns:
        Resolved configuration

    Raises:
        ConfigError: If any layer is invalid
    """
    if environ is None:
        environ = os.environ

    values: Dict[str, Any] = {}

    if config_file is not None:
        values.update(load_yaml_config(Path(config_file), required=True))
    else:
        values.update(load_yaml_config(get_global_dir() / CONFIG_FILE_NAME))

    if environ.get("DOTNETKIT_HOME"):
        values["install_root"] = environ["DOTNETKIT_HOME"]
    if environ.get("DOTNETKIT_PLATFORM"):
        values["platform"] = environ["DOTNETKIT_PLATFORM"]

    values.update({k: v for k, v in overrides.items() if v is not None})

    if "install_root" not in values:
        values["install_root"] = get_global_dir()
    if "platform" not in values:
        from dotnetkit.core.platform import current_runtime_identifier

        values["platform"] = current_runtime_identifier()

    try:
        config = InstallerConfig(**values)
    except TypeError as e:
        raise ConfigError(f"Invalid configuration: {e}") from e

    logger.debug(
        f"Resolved config: root={config.install_root}, platform={config.platform}"
    )
    return config
