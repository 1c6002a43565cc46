"""
Core functionality for dotnetkit.

This package contains the foundational modules that other components depend on.
"""

from .config import (
    InstallerConfig,
    load_config,
    get_global_dir,
)

from .platform import (
    PlatformInfo,
    detect_platform,
    current_runtime_identifier,
    clear_platform_cache,
)

from .version import SemanticVersion

from .exceptions import (
    DotnetKitError,
    ConfigError,
    PlatformNotSupportedError,
    InvalidVersionError,
    InvalidExpressionError,
    CatalogUnavailableError,
    NoMatchingBuildError,
    ProjectConfigNotFoundError,
    ProjectConfigError,
    AlreadyInstalledError,
    TransferError,
    SizeUnknownError,
    DestinationConflictError,
    IntegrityMismatchError,
    ExtractionFailureError,
    UnsupportedArchiveFormat,
    InsecureArchiveError,
    LedgerError,
    LedgerLockTimeout,
)

__all__ = [
    "InstallerConfig",
    "load_config",
    "get_global_dir",
    "PlatformInfo",
    "detect_platform",
    "current_runtime_identifier",
    "clear_platform_cache",
    "SemanticVersion",
    "DotnetKitError",
    "ConfigError",
    "PlatformNotSupportedError",
    "InvalidVersionError",
    "InvalidExpressionError",
    "CatalogUnavailableError",
    "NoMatchingBuildError",
    "ProjectConfigNotFoundError",
    "ProjectConfigError",
    "AlreadyInstalledError",
    "TransferError",
    "SizeUnknownError",
    "DestinationConflictError",
    "IntegrityMismatchError",
    "ExtractionFailureError",
    "UnsupportedArchiveFormat",
    "InsecureArchiveError",
    "LedgerError",
    "LedgerLockTimeout",
]
