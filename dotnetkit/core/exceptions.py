"""
Centralized exception hierarchy for dotnetkit.

This module defines all custom exceptions used across the codebase
to provide clear exception semantics for every stage of an install.
"""


# ============================================================================
# Base Exceptions
# ============================================================================


class DotnetKitError(Exception):
    """Base exception for all dotnetkit errors."""

    pass


class ConfigError(DotnetKitError):
    """Configuration parsing or validation error."""

    pass


class PlatformNotSupportedError(DotnetKitError):
    """Raised when the current OS/architecture has no SDK builds."""

    pass


class InvalidVersionError(DotnetKitError):
    """Malformed semantic version string."""

    pass


# ============================================================================
# Resolution Exceptions
# ============================================================================


class InvalidExpressionError(DotnetKitError):
    """Raised when a version expression matches none of the accepted shapes."""

    def __init__(self, expression: str, reason: str = ""):
        self.expression = expression
        msg = f"Invalid version expression: '{expression}'"
        if reason:
            msg += f" ({reason})"
        else:
            msg += (
                ". Expected an exact version (9.0.100), a major version (9), "
                "'9.0.x', '9.0.1xx', 'latest' or 'lts'"
            )
        super().__init__(msg)


class CatalogUnavailableError(DotnetKitError):
    """Raised when the release index or a channel document cannot be loaded."""

    pass


class NoMatchingBuildError(DotnetKitError):
    """Raised when no build in the catalog satisfies the request."""

    pass


class ProjectConfigNotFoundError(DotnetKitError):
    """Raised when no global.json exists between the start dir and the root."""

    def __init__(self, start_dir):
        self.start_dir = start_dir
        super().__init__(
            f"No version specified and no global.json found in {start_dir} "
            f"or any parent directory"
        )


class ProjectConfigError(DotnetKitError):
    """Raised when a global.json file is malformed or has no SDK version."""

    pass


# ============================================================================
# Install Exceptions
# ============================================================================


class AlreadyInstalledError(DotnetKitError):
    """Raised when the ledger already lists the requested version."""

    def __init__(self, version: str, platform: str):
        self.version = version
        self.platform = platform
        super().__init__(f".NET SDK {version} is already installed for {platform}")


class TransferError(DotnetKitError):
    """Base exception for artifact transfer failures."""

    pass


class SizeUnknownError(TransferError):
    """Raised when the server reports no (or zero) content length."""

    pass


class DestinationConflictError(TransferError):
    """Raised when the download destination already exists."""

    pass


class IntegrityMismatchError(TransferError):
    """Raised when the computed digest differs from the catalog digest."""

    def __init__(self, file_name: str, expected: str, actual: str):
        self.file_name = file_name
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"Hash mismatch for {file_name}: expected {expected}, got {actual}"
        )


class ExtractionFailureError(DotnetKitError):
    """Failed to extract an archive."""

    pass


class UnsupportedArchiveFormat(ExtractionFailureError):
    """Archive format is not supported."""

    pass


class InsecureArchiveError(ExtractionFailureError):
    """Archive contains insecure paths (directory traversal attempt)."""

    pass


class FilesystemError(DotnetKitError):
    """Raised when an installer-managed path cannot be removed."""

    pass


# ============================================================================
# Ledger Exceptions
# ============================================================================


class LedgerError(DotnetKitError):
    """Raised when the install ledger cannot be read or written."""

    pass


class LedgerLockTimeout(LedgerError):
    """Raised when the ledger lock cannot be acquired within timeout."""

    pass
