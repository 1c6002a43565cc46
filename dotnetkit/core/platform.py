"""
Platform detection for dotnetkit.

This module detects the current operating system, CPU architecture and C
library flavour, and maps them onto the .NET runtime identifier used by the
release catalog to name platform-specific SDK archives.

Usage:
    from dotnetkit.core.platform import detect_platform

    platform_info = detect_platform()
    print(platform_info.runtime_identifier())  # e.g. 'linux-x64'
"""

import functools
import platform
import subprocess
from dataclasses import dataclass

from dotnetkit.core.exceptions import PlatformNotSupportedError


@dataclass
class PlatformInfo:
    """
    Platform information relevant to SDK selection.

    Attributes:
        os: Operating system ('linux', 'macos', 'windows')
        arch: CPU architecture ('x64', 'arm64', 'x86', 'arm')
        abi: C library flavour on Linux ('glibc', 'musl'), otherwise ''
    """

    os: str
    arch: str
    abi: str = ""

    def platform_string(self) -> str:
        """Get canonical platform string (e.g., 'linux-x64', 'macos-arm64')."""
        return f"{self.os}-{self.arch}"

    def runtime_identifier(self) -> str:
        """
        Get the .NET runtime identifier used by release catalog files.

        Example:
            >>> PlatformInfo('macos', 'arm64').runtime_identifier()
            'osx-arm64'
            >>> PlatformInfo('linux', 'x64', 'musl').runtime_identifier()
            'linux-musl-x64'
        """
        os_map = {"linux": "linux", "macos": "osx", "windows": "win"}
        os_name = os_map.get(self.os, self.os)
        if self.os == "linux" and self.abi == "musl":
            os_name = "linux-musl"
        return f"{os_name}-{self.arch}"

    def __str__(self) -> str:
        parts = [self.platform_string()]
        if self.abi:
            parts.append(f"[{self.abi}]")
        return " ".join(parts)


@functools.lru_cache(maxsize=1)
def detect_platform() -> PlatformInfo:
    """
    Detect current platform information.

    This function is cached - it only runs detection once per process.

    Raises:
        PlatformNotSupportedError: If the OS or architecture is unknown
    """
    os_name = _detect_os()
    arch = _detect_architecture()
    abi = _detect_linux_abi() if os_name == "linux" else ""
    return PlatformInfo(os=os_name, arch=arch, abi=abi)


def _detect_os() -> str:
    system = platform.system().lower()

    if system == "linux":
        return "linux"
    elif system == "darwin":
        return "macos"
    elif system == "windows":
        return "windows"
    else:
        raise PlatformNotSupportedError(f"Unsupported operating system: {system}")


def _detect_architecture() -> str:
    machine = platform.machine().lower()

    if machine in ("x86_64", "amd64", "x64"):
        return "x64"
    elif machine in ("aarch64", "arm64"):
        return "arm64"
    elif machine in ("i386", "i686", "x86"):
        return "x86"
    elif machine.startswith("arm"):
        return "arm"
    else:
        raise PlatformNotSupportedError(f"Unsupported architecture: {machine}")


def _detect_linux_abi() -> str:
    """
    Detect the Linux C library flavour.

    Returns:
        ABI string: 'glibc', 'musl', or 'unknown'
    """
    try:
        result = subprocess.run(
            ["ldd", "--version"], capture_output=True, text=True, timeout=5
        )
    except (OSError, subprocess.SubprocessError):
        return "unknown"

    output = result.stdout.lower() + result.stderr.lower()

    if "musl" in output:
        return "musl"

    if "glibc" in output or "gnu libc" in output:
        return "glibc"

    return "unknown"


def current_runtime_identifier() -> str:
    """Shortcut for ``detect_platform().runtime_identifier()``."""
    return detect_platform().runtime_identifier()


def clear_platform_cache():
    """
    Clear the platform detection cache.

    Useful for testing or when platform information changes.
    """
    detect_platform.cache_clear()


__all__ = [
    "PlatformInfo",
    "detect_platform",
    "current_runtime_identifier",
    "clear_platform_cache",
]
