"""
Shared utilities for CLI commands.

Provides common functionality used across CLI commands to ensure consistent
configuration loading and output formatting.
"""

import logging
import sys
from typing import Optional

from dotnetkit.core.config import InstallerConfig, load_config
from dotnetkit.core.download import DownloadProgress, format_progress

logger = logging.getLogger(__name__)


# ============================================================================
# Configuration Management
# ============================================================================


def config_from_args(args) -> InstallerConfig:
    """
    Build the installer configuration from global CLI options.

    Args:
        args: Parsed arguments with config, install_root and platform fields

    Returns:
        Resolved InstallerConfig
    """
    return load_config(
        config_file=getattr(args, "config", None),
        install_root=getattr(args, "install_root", None),
        platform=getattr(args, "platform", None),
    )


# ============================================================================
# User Interface / Output Formatting
# ============================================================================


def print_error(message: str, details: Optional[str] = None):
    """
    Print error message to stderr in consistent format.

    Args:
        message: Main error message
        details: Optional additional details
    """
    print(f"ERROR: {message}", file=sys.stderr)
    if details:
        print(f"  {details}", file=sys.stderr)


class ProgressPrinter:
    """
    Renders download progress on a single stderr line.

    Only draws when stderr is a terminal; the installer never depends on it.
    """

    def __init__(self, stream=None, enabled: Optional[bool] = None):
        self.stream = stream or sys.stderr
        self.enabled = self.stream.isatty() if enabled is None else enabled
        self._drawn = False

    def __call__(self, progress: DownloadProgress):
        if not self.enabled:
            return
        self.stream.write(f"\r  Downloading .NET SDK: {format_progress(progress)}   ")
        self.stream.flush()
        self._drawn = True

    def finish(self):
        if self._drawn:
            self.stream.write("\n")
            self.stream.flush()
            self._drawn = False
