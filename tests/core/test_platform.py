"""
Unit tests for platform detection and runtime identifier mapping.
"""

import subprocess
from unittest.mock import MagicMock, patch

import pytest

from dotnetkit.core.exceptions import PlatformNotSupportedError
from dotnetkit.core.platform import (
    PlatformInfo,
    _detect_architecture,
    _detect_linux_abi,
    _detect_os,
    current_runtime_identifier,
    detect_platform,
)


class TestRuntimeIdentifier:
    """Test PlatformInfo.runtime_identifier."""

    @pytest.mark.parametrize(
        "os_name,arch,abi,expected",
        [
            ("linux", "x64", "glibc", "linux-x64"),
            ("linux", "arm64", "glibc", "linux-arm64"),
            ("linux", "x64", "musl", "linux-musl-x64"),
            ("macos", "arm64", "", "osx-arm64"),
            ("macos", "x64", "", "osx-x64"),
            ("windows", "x64", "", "win-x64"),
            ("windows", "x86", "", "win-x86"),
        ],
    )
    def test_mapping(self, os_name, arch, abi, expected):
        """Test OS/arch/ABI map onto .NET runtime identifiers."""
        assert PlatformInfo(os_name, arch, abi).runtime_identifier() == expected

    def test_platform_string(self):
        """Test canonical platform string."""
        assert PlatformInfo("macos", "arm64").platform_string() == "macos-arm64"

    def test_str_includes_abi(self):
        """Test str() shows ABI when present."""
        assert str(PlatformInfo("linux", "x64", "musl")) == "linux-x64 [musl]"


class TestDetection:
    """Test OS and architecture detection."""

    @pytest.mark.parametrize(
        "system,expected", [("Linux", "linux"), ("Darwin", "macos"), ("Windows", "windows")]
    )
    def test_detect_os(self, system, expected):
        """Test OS names are normalized."""
        with patch("platform.system", return_value=system):
            assert _detect_os() == expected

    def test_unsupported_os(self):
        """Test unknown OS raises PlatformNotSupportedError."""
        with patch("platform.system", return_value="Plan9"):
            with pytest.raises(PlatformNotSupportedError):
                _detect_os()

    @pytest.mark.parametrize(
        "machine,expected",
        [("x86_64", "x64"), ("AMD64", "x64"), ("aarch64", "arm64"), ("arm64", "arm64"),
         ("i686", "x86"), ("armv7l", "arm")],
    )
    def test_detect_architecture(self, machine, expected):
        """Test architecture names are normalized."""
        with patch("platform.machine", return_value=machine):
            assert _detect_architecture() == expected

    def test_unsupported_architecture(self):
        """Test unknown architecture raises PlatformNotSupportedError."""
        with patch("platform.machine", return_value="sparc64"):
            with pytest.raises(PlatformNotSupportedError):
                _detect_architecture()

    def test_detect_platform_cached(self):
        """Test detection result is cached."""
        with patch("platform.system", return_value="Darwin"), patch(
            "platform.machine", return_value="arm64"
        ):
            first = detect_platform()
            second = detect_platform()

        assert first is second
        assert current_runtime_identifier() == "osx-arm64"


class TestLinuxAbi:
    """Test Linux C library detection."""

    def test_musl(self):
        """Test musl is detected from ldd output."""
        result = MagicMock(stdout="", stderr="musl libc (x86_64)\nVersion 1.2.4\n")
        with patch("subprocess.run", return_value=result):
            assert _detect_linux_abi() == "musl"

    def test_glibc(self):
        """Test glibc is detected from ldd output."""
        result = MagicMock(stdout="ldd (Ubuntu GLIBC 2.35-0ubuntu3) 2.35\n", stderr="")
        with patch("subprocess.run", return_value=result):
            assert _detect_linux_abi() == "glibc"

    def test_ldd_missing(self):
        """Test missing ldd gives 'unknown'."""
        with patch("subprocess.run", side_effect=FileNotFoundError()):
            assert _detect_linux_abi() == "unknown"

    def test_ldd_timeout(self):
        """Test ldd timeout gives 'unknown'."""
        with patch(
            "subprocess.run", side_effect=subprocess.TimeoutExpired(["ldd"], 5)
        ):
            assert _detect_linux_abi() == "unknown"
