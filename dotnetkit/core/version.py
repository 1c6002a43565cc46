"""
Semantic version parsing and precedence comparison.

SDK versions published in the release catalog follow SemVer 2.0
(e.g. "9.0.100", "10.0.100-rc.2.25502.107"). Precedence rules:

- major, minor and patch compare numerically
- a version with a prerelease sorts before the same version without one
- prerelease identifiers compare left to right; numeric identifiers compare
  numerically and sort before alphanumeric ones
- build metadata is ignored
"""

import functools
import re
from typing import Optional

from dotnetkit.core.exceptions import InvalidVersionError

_SEMVER_RE = re.compile(
    r"^(?P<major>0|[1-9]\d*)\.(?P<minor>0|[1-9]\d*)\.(?P<patch>0|[1-9]\d*)"
    r"(?:-(?P<prerelease>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?"
    r"(?:\+(?P<build>[0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$"
)


@functools.total_ordering
class SemanticVersion:
    """
    Semantic version parser and comparator.

    Example:
        >>> v1 = SemanticVersion.parse("9.0.100")
        >>> v2 = SemanticVersion.parse("9.0.100-rc.1")
        >>> v2 < v1
        True
    """

    __slots__ = ("major", "minor", "patch", "prerelease", "build")

    def __init__(
        self,
        major: int,
        minor: int,
        patch: int,
        prerelease: tuple = (),
        build: tuple = (),
    ):
        self.major = major
        self.minor = minor
        self.patch = patch
        self.prerelease = tuple(prerelease)
        self.build = tuple(build)

    @classmethod
    def parse(cls, text: str) -> "SemanticVersion":
        """
        Parse a SemVer 2.0 version string.

        Args:
            text: Version string (e.g. "9.0.100" or "9.0.100-preview.1")

        Returns:
            Parsed version

        Raises:
            InvalidVersionError: If the string is not a valid semantic version
        """
        if not isinstance(text, str):
            raise InvalidVersionError(f"Invalid version: {text!r}")

        match = _SEMVER_RE.match(text.strip())
        if not match:
            raise InvalidVersionError(
                f"Invalid version format: '{text}'. "
                f"Expected format: major.minor.patch[-prerelease][+build]"
            )

        prerelease = match.group("prerelease")
        build = match.group("build")

        return cls(
            int(match.group("major")),
            int(match.group("minor")),
            int(match.group("patch")),
            tuple(prerelease.split(".")) if prerelease else (),
            tuple(build.split(".")) if build else (),
        )

    @classmethod
    def try_parse(cls, text: str) -> Optional["SemanticVersion"]:
        """Parse a version, returning None instead of raising."""
        try:
            return cls.parse(text)
        except InvalidVersionError:
            return None

    @property
    def is_prerelease(self) -> bool:
        return bool(self.prerelease)

    @property
    def feature_band(self) -> int:
        """Hundreds digit of the patch number (9.0.304 -> 3)."""
        return self.patch // 100

    def _prerelease_key(self) -> tuple:
        # Release versions sort after any prerelease of the same core version
        if not self.prerelease:
            return (1,)

        parts = []
        for identifier in self.prerelease:
            if identifier.isdigit():
                parts.append((0, int(identifier), ""))
            else:
                parts.append((1, 0, identifier))
        return (0, tuple(parts))

    def _key(self) -> tuple:
        return (self.major, self.minor, self.patch, self._prerelease_key())

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return self._key() == other._key()

    def __lt__(self, other: "SemanticVersion") -> bool:
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return self._key() < other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.prerelease:
            text += "-" + ".".join(self.prerelease)
        if self.build:
            text += "+" + ".".join(self.build)
        return text

    def __repr__(self) -> str:
        return f"SemanticVersion('{self}')"
