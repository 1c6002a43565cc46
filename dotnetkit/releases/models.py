"""
Release catalog data model.

Channels, releases and SDK build descriptors are created fresh from the
remote release metadata on every run and are immutable once loaded.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple

from dotnetkit.core.version import SemanticVersion

logger = logging.getLogger(__name__)

SUPPORTED_ARCHIVE_SUFFIX = ".tar.gz"


class SupportPhase(Enum):
    """Support lifecycle phase of a release channel."""

    PREVIEW = "preview"
    GO_LIVE = "go-live"
    ACTIVE = "active"
    MAINTENANCE = "maintenance"
    EOL = "eol"
    UNKNOWN = "unknown"

    @classmethod
    def from_value(cls, value: Optional[str]) -> "SupportPhase":
        try:
            return cls((value or "").lower())
        except ValueError:
            logger.debug(f"Unknown support phase: {value!r}")
            return cls.UNKNOWN


class ReleaseType(Enum):
    """Release line type: long-term or standard-term support."""

    LTS = "lts"
    STS = "sts"
    UNKNOWN = "unknown"

    @classmethod
    def from_value(cls, value: Optional[str]) -> "ReleaseType":
        try:
            return cls((value or "").lower())
        except ValueError:
            logger.debug(f"Unknown release type: {value!r}")
            return cls.UNKNOWN


@dataclass(frozen=True)
class PlatformFile:
    """One downloadable archive of a build for a single platform."""

    platform: str
    """Runtime identifier (e.g. 'linux-x64')"""

    url: str
    """Download URL"""

    digest: str
    """Hex SHA-512 digest declared by the catalog"""

    name: str
    """File base name (e.g. 'dotnet-sdk-linux-x64.tar.gz')"""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Optional["PlatformFile"]:
        """
        Build from a catalog file record.

        Returns:
            PlatformFile, or None for records without a runtime identifier or
            in an unsupported archive format
        """
        rid = data.get("rid")
        url = data["url"]
        name = data.get("name") or url.rsplit("/", 1)[-1]
        if not rid or not url.lower().endswith(SUPPORTED_ARCHIVE_SUFFIX):
            return None
        return cls(platform=rid, url=url, digest=data["hash"], name=name)


@dataclass(frozen=True)
class BuildDescriptor:
    """One concrete, installable SDK build."""

    version: SemanticVersion
    display_version: str
    runtime_version: Optional[str]
    files: Tuple[PlatformFile, ...]
    channel_version: str = ""

    def file_for(self, platform: str) -> Optional[PlatformFile]:
        """Get the archive for a platform identifier, if the build ships one."""
        for f in self.files:
            if f.platform == platform:
                return f
        return None

    @property
    def platforms(self) -> List[str]:
        return [f.platform for f in self.files]

    @classmethod
    def from_dict(
        cls, data: Dict[str, Any], channel_version: str = ""
    ) -> Optional["BuildDescriptor"]:
        """
        Build from a catalog SDK record.

        Returns:
            BuildDescriptor, or None if the version string is not semver

        Raises:
            KeyError: If a required field is missing
        """
        raw_version = data["version"]
        version = SemanticVersion.try_parse(raw_version)
        if version is None:
            logger.warning(f"Skipping SDK with unparseable version: {raw_version!r}")
            return None

        files: Dict[str, PlatformFile] = {}
        for file_data in data.get("files") or []:
            platform_file = PlatformFile.from_dict(file_data)
            # At most one archive per platform; first record wins
            if platform_file and platform_file.platform not in files:
                files[platform_file.platform] = platform_file

        return cls(
            version=version,
            display_version=data.get("version-display") or raw_version,
            runtime_version=data.get("runtime-version"),
            files=tuple(files.values()),
            channel_version=channel_version,
        )


@dataclass(frozen=True)
class Release:
    """A release record: the primary SDK slot plus any secondary SDK slots."""

    release_version: str
    sdk: Optional[BuildDescriptor]
    sdks: Tuple[BuildDescriptor, ...] = ()


@dataclass(frozen=True)
class Channel:
    """A release line (e.g. '9.0') and its releases."""

    channel_version: str
    latest_release: str
    latest_runtime: str
    latest_sdk: str
    support_phase: SupportPhase
    release_type: ReleaseType
    releases: Tuple[Release, ...] = field(default_factory=tuple)

    @property
    def is_active(self) -> bool:
        return self.support_phase == SupportPhase.ACTIVE

    @property
    def is_lts(self) -> bool:
        return self.release_type == ReleaseType.LTS

    def primary_builds(self) -> Iterator[BuildDescriptor]:
        for release in self.releases:
            if release.sdk is not None:
                yield release.sdk

    def secondary_builds(self) -> Iterator[BuildDescriptor]:
        for release in self.releases:
            yield from release.sdks

    def builds(self) -> List[BuildDescriptor]:
        """All SDK builds, primary slots first, de-duplicated by version."""
        seen = set()
        result = []
        for build in list(self.primary_builds()) + list(self.secondary_builds()):
            if build.version not in seen:
                seen.add(build.version)
                result.append(build)
        return result


def all_builds(catalog: List[Channel]) -> List[BuildDescriptor]:
    """Flatten a catalog into a de-duplicated list of builds."""
    seen = set()
    result = []
    for channel in catalog:
        for build in channel.builds():
            if build.version not in seen:
                seen.add(build.version)
                result.append(build)
    return result
